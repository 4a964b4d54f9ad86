"""Module entrypoint for ``python -m diffreview``.

All argument parsing and session setup happen in ``diffreview.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
