"""statio CLI for inspecting files and the installation."""
import typer

from . import general, h5

app = typer.Typer()
app.add_typer(general.app, name="self")
app.add_typer(h5.app, name="h5")
