"""Module and console entrypoint.

- Development: python -m novaava
- Installed:   novaava
"""

from main import main


def __main__() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    __main__()
