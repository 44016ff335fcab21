from __future__ import annotations

import argparse
import getpass
import json
import logging
import os
from typing import Any, Optional, Sequence

from sqlcliq_engine.api import SqlCliq
from sqlcliq_engine.errors import StorageError
from sqlcliq_engine.parser import split_command

CONFIG_FILE = os.path.join(os.path.expanduser("~"), ".sqlcliq_config.json")
DEFAULT_LOG_FILE = "sqlcliq.log"
LOGGER_NAME = "sqlcliq_engine"
CLEAR_SCREEN = "\033[2J\033[H"

BANNER = [
    "Welcome to SQL Cliq!",
    "Type 'HELP;' for a list of basic commands.",
    "Meta commands: .help, .clear, .exit",
]


def load_config(path: str) -> dict[str, Any]:
    try:
        if not os.path.exists(path):
            return {}
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            return data
    except (OSError, json.JSONDecodeError) as exc:
        logging.getLogger(LOGGER_NAME).warning("Load config failed: %s", exc)
    return {}


def build_logger(log_file: str, level: str) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    log_path = os.path.abspath(log_file)
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and getattr(handler, "baseFilename", None) == log_path:
            return logger

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    return logger


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SQL Cliq command line")
    parser.add_argument("data_file", nargs="?", help="JSON file holding all databases")
    parser.add_argument("--config", default=CONFIG_FILE, help="Path to a JSON config file")
    parser.add_argument("--log-file", help="Where to write the session log")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    config = load_config(args.config)
    data_file = args.data_file or config.get("data_file") or None
    logger = build_logger(
        args.log_file or str(config.get("log_file") or DEFAULT_LOG_FILE),
        args.log_level or str(config.get("log_level") or "INFO"),
    )

    try:
        session = SqlCliq(data_file)
    except StorageError as exc:
        print(f"Error: {exc}")
        return

    logger.info("Session started (data file: %s)", data_file or "<memory>")
    print("\n".join(BANNER))
    try:
        while True:
            try:
                if session.awaiting_password:
                    line = getpass.getpass(f"{session.prompt} ")
                else:
                    line = input(f"{session.prompt} ").strip()
            except EOFError:
                break
            except KeyboardInterrupt:
                print()
                session.cancel_password()
                continue

            if not session.awaiting_password:
                if not line:
                    continue
                if line in {".exit", ".quit"}:
                    break
                if line == ".help":
                    print("\n".join(BANNER))
                    continue
                if line == ".clear":
                    print(CLEAR_SCREEN, end="")
                    continue
                verb, _ = split_command(line)
                if verb == "ASSIST":
                    print("Error: The SQL assistant is not available in this session.")
                    continue

            try:
                result = session.execute(line)
            except StorageError as exc:
                logger.error("Persist failed: %s", exc)
                print(f"Error: {exc}")
                continue
            if result.clear_screen:
                print(CLEAR_SCREEN, end="")
            for out_line in result.output:
                print(out_line)
    finally:
        try:
            session.close()
        except StorageError as exc:
            logger.error("Persist failed on exit: %s", exc)
            print(f"Error: {exc}")
        logger.info("Session closed")


if __name__ == "__main__":
    main()
