"""Commands to inspect HDF5 files written by statio."""
from pathlib import Path

import typer
from rich import print
from rich.markup import escape

from ..io import Dataset, HDF5Error, HDF5File
from ..machine import Gaussian

app = typer.Typer()


def _fail(err: Exception):
    print(f"[red]Error:[/red] {escape(str(err))}")
    raise typer.Exit(code=1)


def _open(file: Path, path: str) -> HDF5File:
    try:
        f = HDF5File(file, "r")
    except HDF5Error as e:
        _fail(e)
    try:
        f.cd(path)
    except HDF5Error as e:
        f.close()
        _fail(e)
    return f


@app.command("ls")
def ls(
    file: Path = typer.Argument(..., help="HDF5 file to list."),
    path: str = typer.Option("/", help="Group to start from."),
):
    """List groups and datasets, with the primary type of each dataset."""
    with _open(file, path) as f:
        for node in f.walk():
            if isinstance(node, Dataset):
                descr = node.describe()
                info = escape(str(descr[0])) if descr else "[i]unsupported type[/i]"
                print(f"{escape(node.path)}  {info}")
            else:
                print(f"[b]{escape(node.path)}/[/b]")


@app.command("describe")
def describe(
    file: Path = typer.Argument(..., help="HDF5 file to inspect."),
    path: str = typer.Argument(..., help="Path of a dataset."),
):
    """Show all valid interpretations of a dataset."""
    with _open(file, "/") as f:
        try:
            descrs = f.describe(path)
        except HDF5Error as e:
            _fail(e)
        for i, descr in enumerate(descrs):
            print(f"{i}: {escape(str(descr))}")


@app.command("gaussian")
def gaussian(
    file: Path = typer.Argument(..., help="HDF5 file with a stored Gaussian."),
    path: str = typer.Option("/", help="Group the Gaussian was saved in."),
):
    """Load a Gaussian machine and print its parameters."""
    with _open(file, path) as f:
        try:
            g = Gaussian.from_file(f)
        except HDF5Error as e:
            _fail(e)
    print(f"[b]n_inputs:[/b] {g.n_inputs}")
    print(f"[b]mean:[/b] {g.mean}")
    print(f"[b]variance:[/b] {g.variance}")
    print(f"[b]variance_thresholds:[/b] {g.variance_thresholds}")
    print(f"[b]g_norm:[/b] {g.g_norm}")
