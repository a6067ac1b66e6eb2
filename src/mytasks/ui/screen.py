# src/mytasks/ui/screen.py

from __future__ import annotations

from ..core.state import AppState

INBOX_HINT = (
    "We'll send a one-time secure link to your email. "
    "Click it to sign in, no password needed."
)
EMPTY_LIST_TEXT = "No tasks yet, add your first one!"


def render_signed_out(state: AppState) -> str:
    providers = list(getattr(state.settings, "oauth_providers", None) or ["google", "facebook"])
    lines = ["Sign in to see your tasks:"]
    for name in providers:
        lines.append(f"  /signin {name}  - Sign in with {name.capitalize()}")
    lines.append("  /email <address>  - Email me a login link")
    lines.append(f"    {INBOX_HINT}")
    lines.append("  /callback <redirect url>  - finish a browser sign-in")
    lines.append("  /verify <address> <code>  - sign in with the emailed code")
    if state.otp_sent:
        lines.append("")
        lines.append("Check your inbox!")
    return "\n".join(lines)


def render_task_lines(state: AppState) -> list[str]:
    if not state.tasks:
        return [f"  {EMPTY_LIST_TEXT}"]
    out: list[str] = []
    for i, task in enumerate(state.tasks, start=1):
        mark = "x" if task.is_completed else " "
        action = "Undo" if task.is_completed else "Complete"
        out.append(f"  {i:>2}. [{mark}] {task.title}   (/done {i} = {action}, /rm {i} = Delete)")
    return out


def render_signed_in(state: AppState) -> str:
    session = state.session
    if session is None:
        return render_signed_out(state)
    user = session.user

    lines = ["=== My Tasks ===", f"Signed in as {user.display_name}"]
    if user.avatar_url:
        lines.append(f"Avatar: {user.avatar_url}")
    lines.append("Type a task to add it, or use /add <title>. /logout to sign out.")
    lines.append("")
    lines.extend(render_task_lines(state))
    return "\n".join(lines)


def render(state: AppState) -> str:
    """Render the single screen in whichever of its two states applies."""
    if state.session is None:
        return render_signed_out(state)
    return render_signed_in(state)
