import sys
from pathlib import Path

import fncli

from . import db
from .core.errors import DayplanError
from .lib import ansi
from .logging_setup import setup_logging


def pick_theme(stream) -> None:
    """Colour only when writing to a terminal."""
    isatty = getattr(stream, "isatty", None)
    ansi.use(ansi.DEFAULT if isatty and isatty() else ansi.PLAIN)


def main():
    setup_logging()
    pick_theme(sys.stdout)
    db.init()
    fncli.autodiscover(Path(__file__).parent, "dayplan")

    user_args = sys.argv[1:]
    argv = ["dayplan", *user_args] if user_args else ["dayplan", "overview"]
    try:
        code = fncli.dispatch(argv)
    except DayplanError as e:
        sys.stderr.write(f"{e}\n")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
