"""Entry point for ``python -m frigate_lxc``."""

from frigate_lxc.cli.main import main


if __name__ == "__main__":
    main()
