"""Command-line entrypoints for the paperlens reader."""


def main(argv: list[str] | None = None) -> int:
    """Lazy CLI dispatcher so importing the package stays cheap.

    Returns:
        int: Process return code.
    """
    from .entrypoints import main as _main

    return _main(argv)


__all__ = ["main"]
