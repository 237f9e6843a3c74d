"""Interface Tkinter principale."""

from __future__ import annotations

import tkinter as tk
from concurrent.futures import Future
from tkinter import ttk

import sv_ttk
from PIL import Image, ImageDraw, ImageFont, ImageTk

from signupdesk.client import SignupClient
from signupdesk.notifier import Kind, Notification, Slot
from signupdesk.state import NO_PARTICIPANTS_TEXT, ActivityCard, AuthView, ParticipantRow, RosterView

ACCENT_COLOR = "#1A237E"
BACKGROUND_COLOR = "#121212"
CARD_COLOR = "#1E1E1E"
STATUS_NEUTRAL_COLOR = "#B3B3B3"
STATUS_ERROR_COLOR = "#F87171"
STATUS_SUCCESS_COLOR = "#4ADE80"
AVATAR_SIZE = 40
WINDOW_SIZE = "980x720"


def make_avatar(username: str, size: int = AVATAR_SIZE) -> Image.Image:
    """Dessine une pastille ronde portant l'initiale de l'utilisateur."""
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    drawer = ImageDraw.Draw(image)
    drawer.ellipse((0, 0, size - 1, size - 1), fill=ACCENT_COLOR)
    initial = (username.strip()[:1] or "?").upper()
    font = ImageFont.load_default()
    left, top, right, bottom = drawer.textbbox((0, 0), initial, font=font)
    position = ((size - (right - left)) / 2 - left, (size - (bottom - top)) / 2 - top)
    drawer.text(position, initial, fill="#FFFFFF", font=font)
    return image


class MainWindow:
    """Fenêtre principale de l'application."""

    def __init__(self, client: SignupClient, root: tk.Tk) -> None:
        self._client = client
        self.root = root
        self.root.title("SignupDesk – Extracurricular Activities")
        self.root.geometry(WINDOW_SIZE)
        self.root.minsize(760, 540)

        sv_ttk.set_theme("dark")
        self.root.configure(bg=BACKGROUND_COLOR)
        self._configure_styles()

        self._email_var = tk.StringVar()
        self._activity_var = tk.StringVar()
        self._avatar_photo: ImageTk.PhotoImage | None = None
        self._delete_buttons: list[ttk.Button] = []
        self._login_window: tk.Toplevel | None = None
        self._login_message: ttk.Label | None = None

        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(1, weight=1)

        self._build_header()
        self._build_main_area()

        client.on_auth_change(self._update_auth_ui)
        client.on_roster_change(self._render_roster)
        client.notifier.subscribe(self._on_notification)
        self._render_roster(client.state.roster_view)
        self._update_auth_ui(client.auth_view())

    # --------------------------------------------------------------------- UI -
    def _configure_styles(self) -> None:
        style = ttk.Style()
        style.configure("Main.TFrame", background=BACKGROUND_COLOR)
        style.configure("Card.TFrame", background=CARD_COLOR)
        style.configure(
            "HeaderTitle.TLabel",
            background=BACKGROUND_COLOR,
            foreground="#FFFFFF",
            font=("Helvetica", 20, "bold"),
        )
        style.configure(
            "Status.TLabel",
            background=BACKGROUND_COLOR,
            foreground=STATUS_NEUTRAL_COLOR,
            font=("Helvetica", 11),
        )
        style.configure(
            "CardTitle.TLabel",
            background=CARD_COLOR,
            foreground="#FFFFFF",
            font=("Helvetica", 13, "bold"),
        )
        style.configure("CardText.TLabel", background=CARD_COLOR, foreground="#E5E5E5")
        style.configure("Muted.TLabel", background=CARD_COLOR, foreground=STATUS_NEUTRAL_COLOR)
        style.configure("Success.TLabel", background=BACKGROUND_COLOR, foreground=STATUS_SUCCESS_COLOR)
        style.configure("Error.TLabel", background=BACKGROUND_COLOR, foreground=STATUS_ERROR_COLOR)
        style.configure("Profile.TLabel", background=BACKGROUND_COLOR, foreground="#FFFFFF", padding=4)
        style.configure("Delete.TButton", padding=(4, 0))
        style.configure("TButton", padding=(16, 8))
        self.root.option_add("*Font", "Helvetica 11")

    def _build_header(self) -> None:
        frame = ttk.Frame(self.root, style="Main.TFrame", padding=(24, 12))
        frame.grid(row=0, column=0, sticky="nwe")
        frame.columnconfigure(0, weight=1)

        ttk.Label(frame, text="Extracurricular Activities", style="HeaderTitle.TLabel").grid(
            row=0, column=0, sticky="w"
        )

        self._status_label = ttk.Label(frame, text="Not logged in", style="Status.TLabel")
        self._status_label.grid(row=0, column=1, sticky="e", padx=(0, 12))

        self._profile_label = ttk.Label(frame, text="👤", style="Profile.TLabel", cursor="hand2")
        self._profile_label.grid(row=0, column=2, sticky="e")
        self._profile_label.bind("<Button-1>", self._show_profile_menu)

        self._profile_menu = tk.Menu(self.root, tearoff=0)

    def _build_main_area(self) -> None:
        main_frame = ttk.Frame(self.root, padding=(24, 8, 24, 16), style="Main.TFrame")
        main_frame.grid(row=1, column=0, sticky="nsew")
        main_frame.columnconfigure(0, weight=3)
        main_frame.columnconfigure(1, weight=2)
        main_frame.rowconfigure(1, weight=1)

        self._message_label = ttk.Label(main_frame, text="", style="Status.TLabel")
        self._message_label.grid(row=0, column=0, columnspan=2, sticky="w", pady=(0, 12))

        self._build_activities_section(main_frame)
        self._build_signup_section(main_frame)

    def _build_activities_section(self, parent: tk.Misc) -> None:
        container = ttk.Frame(parent, style="Main.TFrame")
        container.grid(row=1, column=0, sticky="nsew", padx=(0, 16))
        container.columnconfigure(0, weight=1)
        container.rowconfigure(0, weight=1)

        self._canvas = tk.Canvas(container, bg=BACKGROUND_COLOR, highlightthickness=0, borderwidth=0)
        self._canvas.grid(row=0, column=0, sticky="nsew")
        scrollbar = ttk.Scrollbar(container, orient=tk.VERTICAL, command=self._canvas.yview)
        scrollbar.grid(row=0, column=1, sticky="ns")
        self._canvas.configure(yscrollcommand=scrollbar.set)

        self._activities_frame = ttk.Frame(self._canvas, style="Main.TFrame")
        self._activities_frame.columnconfigure(0, weight=1)
        window_id = self._canvas.create_window((0, 0), window=self._activities_frame, anchor="nw")
        self._activities_frame.bind(
            "<Configure>",
            lambda _: self._canvas.configure(scrollregion=self._canvas.bbox("all")),
        )
        self._canvas.bind("<Configure>", lambda event: self._canvas.itemconfigure(window_id, width=event.width))

    def _build_signup_section(self, parent: tk.Misc) -> None:
        frame = ttk.Frame(parent, style="Card.TFrame", padding=(20, 18))
        frame.grid(row=1, column=1, sticky="new")
        frame.columnconfigure(0, weight=1)

        ttk.Label(frame, text="Sign Up a Student", style="CardTitle.TLabel").grid(row=0, column=0, sticky="w")
        ttk.Label(frame, text="Student Email", style="CardText.TLabel").grid(row=1, column=0, sticky="w", pady=(14, 4))
        self._email_entry = ttk.Entry(frame, textvariable=self._email_var)
        self._email_entry.grid(row=2, column=0, sticky="ew")
        self._email_entry.bind("<Return>", lambda _: self.submit_signup())

        ttk.Label(frame, text="Activity", style="CardText.TLabel").grid(row=3, column=0, sticky="w", pady=(14, 4))
        self._activity_combo = ttk.Combobox(frame, textvariable=self._activity_var, state="readonly")
        self._activity_combo.grid(row=4, column=0, sticky="ew")

        self._signup_button = ttk.Button(
            frame,
            text="Sign Up",
            command=self.submit_signup,
            style="Accent.TButton",
            state=tk.DISABLED,
        )
        self._signup_button.grid(row=5, column=0, sticky="e", pady=(18, 0))

    def _render_roster(self, view: RosterView) -> None:
        """Reconstruit entièrement la liste à partir de la vue fournie."""
        for child in self._activities_frame.winfo_children():
            child.destroy()
        self._delete_buttons = []

        if view.placeholder is not None:
            ttk.Label(self._activities_frame, text=view.placeholder, style="Status.TLabel").grid(
                row=0, column=0, sticky="w"
            )
        for index, card in enumerate(view.cards):
            self._build_card(card).grid(row=index, column=0, sticky="ew", pady=(0, 12))

        names = list(view.activity_names)
        self._activity_combo.configure(values=names)
        if self._activity_var.get() not in names:
            self._activity_var.set("")

    def _build_card(self, card: ActivityCard) -> ttk.Frame:
        frame = ttk.Frame(self._activities_frame, style="Card.TFrame", padding=(16, 12))
        frame.columnconfigure(0, weight=1)

        ttk.Label(frame, text=card.name, style="CardTitle.TLabel").grid(row=0, column=0, sticky="w")
        ttk.Label(frame, text=card.description, style="CardText.TLabel", wraplength=480).grid(
            row=1, column=0, sticky="w", pady=(6, 0)
        )
        ttk.Label(frame, text=f"Schedule: {card.schedule}", style="CardText.TLabel").grid(
            row=2, column=0, sticky="w", pady=(4, 0)
        )
        ttk.Label(frame, text=f"Availability: {card.availability}", style="CardText.TLabel").grid(
            row=3, column=0, sticky="w", pady=(4, 0)
        )

        if not card.participants:
            ttk.Label(frame, text=NO_PARTICIPANTS_TEXT, style="Muted.TLabel").grid(
                row=4, column=0, sticky="w", pady=(8, 0)
            )
            return frame

        ttk.Label(frame, text="Participants:", style="CardText.TLabel").grid(row=4, column=0, sticky="w", pady=(8, 2))
        for offset, row in enumerate(card.participants, start=5):
            line = ttk.Frame(frame, style="Card.TFrame")
            line.grid(row=offset, column=0, sticky="ew")
            ttk.Label(line, text=row.email, style="CardText.TLabel").pack(side=tk.LEFT)
            button = ttk.Button(
                line,
                text="❌",
                style="Delete.TButton",
                command=lambda r=row: self.unregister(r),
            )
            button.pack(side=tk.RIGHT)
            self._delete_buttons.append(button)
        return frame

    def _show_profile_menu(self, event: tk.Event) -> None:
        self._profile_menu.delete(0, "end")
        if self._client.auth_view().logged_in:
            self._profile_menu.add_command(label="Logout", command=self.logout)
        else:
            self._profile_menu.add_command(label="Login", command=self.open_login)
        try:
            self._profile_menu.tk_popup(event.x_root, event.y_root)
        finally:
            self._profile_menu.grab_release()

    def _update_profile_avatar(self, view: AuthView) -> None:
        if not view.logged_in or not view.username:
            self._avatar_photo = None
            self._profile_label.configure(image="", text="👤")
            return
        self._avatar_photo = ImageTk.PhotoImage(make_avatar(view.username))
        self._profile_label.configure(image=self._avatar_photo, text="")

    def _update_auth_ui(self, view: AuthView) -> None:
        """Met à jour l'interface en fonction de l'état d'authentification."""
        if view.logged_in:
            self._status_label.configure(
                text=f"Logged in as: {view.username}",
                foreground=STATUS_SUCCESS_COLOR,
            )
        else:
            self._status_label.configure(text="Not logged in", foreground=STATUS_NEUTRAL_COLOR)

        self._signup_button.configure(state=tk.NORMAL if view.signup_enabled else tk.DISABLED)
        for button in self._delete_buttons:
            if view.delete_visible:
                button.pack(side=tk.RIGHT)
            else:
                button.pack_forget()
        self._update_profile_avatar(view)

    def _on_notification(self, slot: Slot, notification: Notification | None) -> None:
        if slot is Slot.MAIN:
            self._apply_message(self._message_label, notification)
        elif self._login_message is not None:
            self._apply_message(self._login_message, notification)

    @staticmethod
    def _apply_message(label: ttk.Label, notification: Notification | None) -> None:
        if notification is None:
            label.configure(text="", style="Status.TLabel")
            return
        style = "Success.TLabel" if notification.kind is Kind.SUCCESS else "Error.TLabel"
        label.configure(text=notification.text, style=style)

    # ------------------------------------------------------------ Connexion -
    def open_login(self) -> None:
        if self._login_window is not None:
            self._login_window.lift()
            return

        window = tk.Toplevel(self.root)
        window.title("Teacher Login")
        window.configure(bg=BACKGROUND_COLOR)
        window.transient(self.root)
        window.protocol("WM_DELETE_WINDOW", self.close_login)

        frame = ttk.Frame(window, style="Main.TFrame", padding=(24, 18))
        frame.grid(row=0, column=0, sticky="nsew")
        frame.columnconfigure(0, weight=1)

        username_var = tk.StringVar()
        password_var = tk.StringVar()
        ttk.Label(frame, text="Username", style="Status.TLabel").grid(row=0, column=0, sticky="w")
        username_entry = ttk.Entry(frame, textvariable=username_var, width=32)
        username_entry.grid(row=1, column=0, sticky="ew", pady=(4, 12))
        ttk.Label(frame, text="Password", style="Status.TLabel").grid(row=2, column=0, sticky="w")
        password_entry = ttk.Entry(frame, textvariable=password_var, show="•", width=32)
        password_entry.grid(row=3, column=0, sticky="ew", pady=(4, 12))

        self._login_message = ttk.Label(frame, text="", style="Status.TLabel")
        self._login_message.grid(row=4, column=0, sticky="w")

        def submit(*_: object) -> None:
            self.submit_login(username_var.get(), password_var.get())

        ttk.Button(frame, text="Login", command=submit, style="Accent.TButton").grid(
            row=5, column=0, sticky="e", pady=(12, 0)
        )
        password_entry.bind("<Return>", submit)
        username_entry.focus()
        self._login_window = window

    def close_login(self) -> None:
        self._client.close_login()
        if self._login_window is not None:
            self._login_window.destroy()
        self._login_window = None
        self._login_message = None

    # --------------------------------------------------------------- Callbacks -
    def submit_login(self, username: str, password: str) -> None:
        def done(future: Future) -> None:
            if future.result().ok:
                self.close_login()

        self._client.login(username, password).add_done_callback(done)

    def logout(self) -> None:
        self._client.logout()

    def submit_signup(self) -> None:
        def done(future: Future) -> None:
            if future.result().ok:
                self._email_var.set("")
                self._activity_var.set("")

        self._client.register(self._activity_var.get(), self._email_var.get().strip()).add_done_callback(done)

    def unregister(self, row: ParticipantRow) -> None:
        self._client.unregister(row.activity, row.email)

    # ----------------------------------------------------------------- Public -
    def run(self) -> None:
        self.root.after_idle(self._client.start)
        try:
            self.root.mainloop()
        finally:
            self._client.close()
