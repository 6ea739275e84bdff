# trainer_portal/email_templates.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

ORG_NAME = "EserciziFacili"

NUTRITION_LABELS = {
    "ottima": "Ottima",
    "buona": "Buona",
    "da_migliorare": "Da migliorare",
    "difficolta": "Difficoltà",
}


@dataclass(frozen=True)
class EmailParts:
    subject: str
    body: str


def _clean(s: Optional[str]) -> str:
    return (s or "").strip()


def _line(label: str, value: Optional[str]) -> str:
    v = _clean(value) or "—"
    return f"{label}: {v}"


def _yes_no(value: bool) -> str:
    return "Sì" if value else "No"


def _footer() -> str:
    return (
        "\n\n"
        "A presto,\n"
        f"{ORG_NAME}\n"
    )


def _dashboard_link(base_url: str) -> str:
    base = _clean(base_url).rstrip("/")
    if not base:
        return ""
    return f"\n\nCompila il check qui: {base}/dashboard\n"


def checkin_reminder(first_name: str, reason: str, base_url: str = "") -> EmailParts:
    name = _clean(first_name) or "ciao"
    subject = f"{name}, è il momento del tuo check settimanale!"

    if reason == "first_feedback_due":
        intro = (
            "Il tuo nuovo programma di allenamento è attivo da una settimana: "
            "vorrei sapere come ti stai trovando."
        )
    else:
        intro = (
            "Sono passate due settimane dal tuo ultimo check "
            "e vorrei sapere come sta andando il tuo percorso."
        )

    body = (
        f"Ciao {name}!\n\n"
        f"{intro}\n\n"
        "Il check mi aiuta a:\n"
        "- monitorare i tuoi progressi\n"
        "- adattare il programma alle tue esigenze\n"
        "- assicurarmi che tu stia ottenendo risultati"
        f"{_dashboard_link(base_url)}"
        f"{_footer()}"
    )
    return EmailParts(subject=subject, body=body)


def admin_new_feedback(feedback, username: Optional[str] = None, base_url: str = "") -> EmailParts:
    full_name = f"{_clean(feedback.first_name)} {_clean(feedback.last_name)}".strip()
    subject = f"Nuovo check da {full_name or username or 'utente'}"
    body = (
        "Un utente ha inviato un nuovo check.\n\n"
        f"{_line('Nome', full_name)}\n"
        f"{_line('Utente', username)}\n"
        f"{_line('Email', feedback.email)}\n"
        f"{_line('Data', str(feedback.feedback_date))}\n\n"
        f"{_line('Soddisfazione allenamento', f'{feedback.training_satisfaction}/10')}\n"
        f"{_line('Motivazione', f'{feedback.motivation_level}/10')}\n"
        f"{_line('Alimentazione', NUTRITION_LABELS.get(feedback.nutrition_quality, feedback.nutrition_quality))}\n"
        f"{_line('Ore di sonno', str(feedback.sleep_hours))}\n"
        f"{_line('Recupero migliorato', _yes_no(feedback.recovery_improved))}\n"
        f"{_line('Si sente supportato', _yes_no(feedback.feels_supported))}\n\n"
        "Difficoltà:\n"
        f"{_clean(feedback.difficulties) or '—'}\n\n"
        "Come migliorare il supporto:\n"
        f"{_clean(feedback.support_improvement) or '—'}"
        + (f"\n\nPannello admin: {_clean(base_url).rstrip('/')}/admin" if _clean(base_url) else "")
        + f"{_footer()}"
    )
    return EmailParts(subject=subject, body=body)
