import logging
import sys
from typing import Any

from colorama import Fore, Style, init


class ConsoleManager:
    """Manages console output, respecting quiet/verbose/color flags."""

    def __init__(self, level: int, no_color: bool):
        self.level = level
        self.no_color = no_color
        if not no_color:
            init(autoreset=True)

    def _log(self, msg: str, log_level: int, color: str = "", exc_info: bool = False):
        if log_level < self.level:
            return

        if not self.no_color and color:
            msg = f"{color}{msg}{Style.RESET_ALL}"

        logging.log(log_level, msg, exc_info=exc_info)

    def debug(self, msg: str):
        self._log(msg, logging.DEBUG, Style.DIM)

    def info(self, msg: str):
        self._log(msg, logging.INFO)

    def warning(self, msg: str):
        self._log(msg, logging.WARNING, Fore.YELLOW)

    def error(self, msg: str):
        self._log(msg, logging.ERROR, Fore.RED)

    def critical(self, msg: str, exc_info: bool = False):
        self._log(msg, logging.CRITICAL, Fore.RED + Style.BRIGHT, exc_info)

    def print_summary(self, report: dict[str, Any]):
        """Print per-kind tallies and classification ratios."""
        if self.level > logging.INFO:  # Only suppress if quiet
            return

        def color_val(val: Any, color: str) -> str:
            if val and not self.no_color and color:
                return f"{color}{val}{Style.RESET_ALL}"
            return str(val)

        stats = report["stats"]
        print("\n--- API Surface Summary ---", file=sys.stderr)
        print(
            f"Graphs: {stats['graphs_loaded_ok']} loaded, "
            f"{color_val(stats['graphs_load_errors'], Fore.RED)} failed, "
            f"{stats['graphs_excluded']} excluded",
            file=sys.stderr,
        )

        header = f"{'Kind':<10} {'Total':>7} {'Stable':>7} {'Unstable':>9} {'Generic':>8}"
        print(header, file=sys.stderr)
        for kind, t in report["summary"].items():
            print(
                f"{kind:<10} {t['total']:>7} {t['stable']:>7} "
                f"{t['unstable']:>9} {t['generic']:>8}",
                file=sys.stderr,
            )

        for c in report["classifications"]:
            ratio = f"{c['ratio'] * 100:.1f}%"
            print(
                f"{c['profile']:<10} {c['matched']}/{c['potential']} "
                f"({color_val(ratio, Fore.GREEN)}), {c['excluded']} excluded",
                file=sys.stderr,
            )
        print("---------------------------", file=sys.stderr)
