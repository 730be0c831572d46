import platform

import typer
from rich import print

from statio_core import __version__

app = typer.Typer()


@app.command("info")
def info():
    """Show information about the system and Python environment."""
    un = platform.uname()
    print(f"[b]System:[/b] {un.system} {un.release} {un.version}")
    print(
        f"[b]Python:[/b] {platform.python_version()} ({platform.python_implementation()})"
    )
    print("[b]Env:[/b]")
    print("statio-core", __version__)
    # the storage backend matters most when reading files written elsewhere
    import h5py

    print("h5py", h5py.version.version, "(HDF5", h5py.version.hdf5_version + ")")
