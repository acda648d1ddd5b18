"""Command-line entrypoint: ``opencall registry show`` and ``opencall call``."""

from __future__ import annotations

import click

from opencall import __version__
from opencall.cli_commands import register_commands


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="opencall")
def main() -> None:
    """Build OpenCALL operation registries and dispatch requests locally.

    Operation sources are read from OPS_DIR, $OPENCALL_OPS_DIR or the
    ``ops_dir`` of a YAML settings file given with --config.
    """


register_commands(main)

if __name__ == "__main__":
    main()
