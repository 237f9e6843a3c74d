"""Point d'entrée de l'application SignupDesk."""

from __future__ import annotations

import tkinter as tk

from signupdesk.client import SignupClient
from signupdesk.config import configure_logging, load_config
from signupdesk.notifier import TkScheduler
from signupdesk.ui.app import MainWindow


def main() -> None:
    """Initialise les dépendances puis lance l'interface Tkinter."""
    config = load_config()
    configure_logging(config.log_level)
    root = tk.Tk()
    client = SignupClient.from_config(config, TkScheduler(root))
    app = MainWindow(client=client, root=root)
    app.run()


if __name__ == "__main__":
    main()
