from __future__ import annotations

from intakeform.cli import cli

if __name__ == "__main__":
    cli()
