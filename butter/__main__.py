"""Module entrypoint so the CLI runs via ``python -m butter``."""

from .cli import main


if __name__ == "__main__":  # pragma: no cover - thin wrapper
    main()
