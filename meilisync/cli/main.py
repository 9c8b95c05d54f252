"""Main CLI application using Cyclopts."""

import cyclopts

from meilisync.cli.commands import flush_file, index, registry, settings

app = cyclopts.App(
    name="meilisync",
    help="Keep search indexes in sync with a database",
)

app.command(index.index, name="index")
app.command(registry.registry, name="registry")
app.command(settings.app, name="settings")
app.command(flush_file.flush_file, name="flush-file")
app.command(flush_file.spool_flush, name="spool-flush")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
