#!/usr/bin/env python3

import argparse
import signal
import sys

from vpnbridge import (
    setup_logging, log_message,
    Config, ConfigError, CredentialManager, CredentialError,
    ExpressVpnCli, LocationCatalog, StatusReader, ProcessError, VpnBridge
)

# Global bridge instance, set once main() has built it
bridge = None


def signal_handler(signum, frame):
    """Handle interrupt signals (Ctrl+C, SIGTERM) by requesting a graceful stop."""
    log_message(0, f"Received signal {signum}. Stopping...")
    if bridge is not None:
        bridge.request_stop()
    else:
        sys.exit(0)


def build_parser():
    parser = argparse.ArgumentParser(
        description="Bridge the ExpressVPN client to MQTT and Home Assistant."
    )
    parser.add_argument(
        "verbosity",
        type=int,
        nargs='?',
        default=None,
        choices=range(6), # 0 to 5
        help="Set verbosity level (0=STATUS, 1=ERROR, 2=SUCCESS, 3=INFO, 4=VARIABLES, 5=DEBUG). Default comes from the config (3).",
        metavar="LEVEL"
    )
    parser.add_argument(
        "--config",
        help="Path to a JSON configuration file."
    )
    parser.add_argument(
        "--environment",
        default="production",
        choices=["production", "development", "testing"],
        help="Configuration environment."
    )
    parser.add_argument(
        "--encrypt",
        metavar="VALUE",
        help="Print VALUE encrypted for use as a secret in the configuration file, then exit."
    )
    parser.add_argument(
        "--list-locations",
        action="store_true",
        help="Print the parsed location catalog and exit."
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Print the current VPN status and exit."
    )
    return parser


def main(argv=None):
    """Load configuration, then run the bridge until signalled."""
    global bridge

    args = build_parser().parse_args(argv)

    try:
        config = Config(args.config, environment=args.environment)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    verbosity = args.verbosity
    if verbosity is None:
        verbosity = 5 if config.environment_config.debug_mode else config.logging.default_verbosity
    setup_logging(
        verbosity,
        log_file=config.logging.log_file,
        log_format=config.logging.log_format,
        date_format=config.logging.log_date_format
    )

    if args.encrypt is not None:
        try:
            manager = CredentialManager(config.security.key_file, config.security.key_file_permissions)
            print(manager.encrypt_data(args.encrypt))
        except CredentialError as e:
            log_message(1, f"Encryption failed: {e}")
            return 1
        return 0

    cli = ExpressVpnCli.from_config(config.provider)

    if args.status or args.list_locations:
        try:
            if args.status:
                print(StatusReader(cli).poll())
            if args.list_locations:
                catalog = LocationCatalog.load(cli, config.provider.favorites, config.provider.header_lines)
                for location in catalog.options():
                    print(location)
        except ProcessError as e:
            log_message(1, f"VPN client query failed: {e}")
            return 1
        return 0

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        bridge = VpnBridge(config, cli=cli)
        bridge.start()
    except (ProcessError, CredentialError, OSError) as e:
        log_message(1, f"Failed to start VPN bridge: {e}")
        return 1

    log_message(0, "VPN bridge running. Press Ctrl+C to stop.")
    try:
        while not bridge.wait(timeout=1):
            pass
    finally:
        bridge.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
