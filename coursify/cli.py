import click

from .extensions import get_store


def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Create an empty JSON file for every collection that is missing one."""
        store = get_store()
        names = store.ensure_all()
        click.echo(f"Collections ready in {store.data_dir}: {', '.join(names)}")
