# routetodev/content/cli.py
import json

import click
from flask import current_app

from ..extensions import db
from .service import import_content


def register_cli(app):
    @app.cli.command("import-content")
    @click.argument("source", type=click.File("r", encoding="utf-8"))
    def import_content_command(source):
        """Upsert paths, modules, resources and quizzes from a JSON file."""
        doc = json.load(source)
        try:
            counts = import_content(doc)
        except (ValueError, KeyError) as e:
            db.session.rollback()
            raise click.ClickException(f"Import failed: {e}")

        db.session.commit()
        current_app.logger.info("Content import counts=%s", counts)
        click.echo(
            "OK: {paths} paths, {modules} modules, {resources} resources, {quizzes} quizzes".format(**counts)
        )
