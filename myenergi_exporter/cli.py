# myenergi_exporter/cli.py
import argparse


def build_parser():
    parser = argparse.ArgumentParser(
        prog="myenergi-exporter",
        description="Prometheus exporter for myenergi zappi and eddi devices"
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Optional path to an INI configuration file"
    )

    parser.add_argument(
        "--listen-address",
        default=None,
        help="Address to serve metrics on (default :8080)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging"
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors"
    )

    return parser
