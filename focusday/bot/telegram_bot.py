"""
FocusDay — Telegram Bot.

Telegram is the user interface: every interaction (timer, tasks, goal,
stats, achievements, notes) flows through this bot. Each Telegram user is an
owner with their own WorkService.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine

from telegram import Update
from telegram.ext import Application, ApplicationBuilder, CommandHandler, ContextTypes

from focusday.config import settings
from focusday.core.achievements import get_progress
from focusday.core.session_machine import SessionState
from focusday.core.time_utils import (
    format_duration_short,
    format_elapsed,
    format_goal_minutes,
)
from focusday.core.validation import DEFAULT_NOTE_COLOR, NOTE_COLORS, ValidationError
from focusday.core.work_service import WorkService
from focusday.data.achievements import ACHIEVEMENTS, achievements_by_category
from focusday.data.models import AchievementCategory, StickyNote
from focusday.ports.store_port import StoreError

if TYPE_CHECKING:
    from focusday.ports.notification_port import NotificationPort
    from focusday.ports.store_port import RecordStorePort

logger = logging.getLogger(__name__)

_STORE_ERROR_REPLY = "Couldn't save that right now. Please try again."

_CATEGORY_TITLES = {
    AchievementCategory.STREAK: "Streaks",
    AchievementCategory.TIME: "Focus time",
    AchievementCategory.TASKS: "Tasks",
}

_NOTE_ICONS = {
    "yellow": "🟨",
    "pink": "🌸",
    "blue": "🟦",
    "green": "🟩",
    "purple": "🟪",
    "orange": "🟧",
}


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores messages from unauthorized users."""

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Per-owner services
# ---------------------------------------------------------------------------


async def _get_service(context: ContextTypes.DEFAULT_TYPE, user_id: int) -> WorkService:
    """Return the owner's WorkService, loading it on first use."""
    services: dict[int, WorkService] = context.bot_data.setdefault("services", {})
    service = services.get(user_id)
    if service is None:
        service = WorkService(
            context.bot_data["store"],
            user_id,
            notifier=context.bot_data.get("notifier"),
            tz_name=settings.TIMEZONE,
        )
        await service.load()
        services[user_id] = service
    return service


def _parse_id(args: list[str] | None) -> int | None:
    if not args:
        return None
    try:
        return int(args[0].lstrip("#"))
    except ValueError:
        return None


def _parse_note_args(args: list[str]) -> tuple[str, str | None, str]:
    """Split ``[color] [title |] content`` into (content, title, color)."""
    color = DEFAULT_NOTE_COLOR
    if args and args[0].lower() in NOTE_COLORS:
        color, args = args[0].lower(), args[1:]
    text = " ".join(args)
    title = None
    if "|" in text:
        title, text = text.split("|", 1)
    return text, title, color


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _progress_bar(percent: float, width: int = 10) -> str:
    filled = int(round(max(0.0, min(100.0, percent)) / 100 * width))
    return "▓" * filled + "░" * (width - filled)


def _render_tasks(service: WorkService) -> str:
    tasks = service.today_tasks()
    if not tasks:
        return "No tasks for today. Add one with /add <text>."
    lines = ["Today's tasks:"]
    for task in tasks:
        mark = "✅" if task.completed else "⬜"
        lines.append(f"{mark} #{task.id} {task.text}")
    return "\n".join(lines)


def _render_today(service: WorkService) -> str:
    elapsed = service.displayed_elapsed()
    summary = service.day_summary()
    progress = service.goal_progress()
    status = "Working" if service.session_state is SessionState.ACTIVE else "Today's work"
    if progress >= 100:
        goal_note = "Goal reached! 🎉"
    else:
        goal_note = f"{format_goal_minutes(service.goal_remaining())} remaining"

    lines = [
        f"{status}: {format_elapsed(elapsed)}",
        f"Goal {format_goal_minutes(service.goal.goal_minutes)}: "
        f"{_progress_bar(progress)} {progress:.0f}% ({goal_note})",
        f"Completed: {summary.completed}  Remaining: {summary.remaining}",
        f"Streak: {service.stats().streak} days",
        "",
        _render_tasks(service),
    ]
    return "\n".join(lines)


def _render_stats(service: WorkService) -> str:
    stats = service.stats()
    window = service.window_summary(settings.STATS_WINDOW_DAYS)
    return "\n".join([
        "All time:",
        f"• Streak: {stats.streak} days",
        f"• Focus time: {stats.total_hours:.1f}h",
        f"• Completed tasks: {stats.completed_tasks}",
        "",
        f"Last {window.days} days:",
        f"• Focus time: {format_duration_short(window.total_seconds)}",
        f"• Days worked: {window.days_worked}/{window.days}",
        f"• Tasks: {window.completed_tasks}/{window.total_tasks} completed",
    ])


def _render_week(service: WorkService) -> str:
    window = service.window_summary(7)
    lines = ["Last 7 days:"]
    for point in window.points:
        tasks = f"{point.completed}/{point.completed + point.incomplete} tasks"
        lines.append(f"• {point.label}: {point.hours}h, {tasks}")
    lines.append(f"Total: {format_duration_short(window.total_seconds)}")
    return "\n".join(lines)


def _render_notes(notes: list[StickyNote]) -> str:
    if not notes:
        return "No notes yet. Pin one with /note <text>."
    lines = ["Sticky notes:"]
    for note in notes:
        icon = _NOTE_ICONS.get(note.color, "📝")
        heading = f"{note.title}: " if note.title else ""
        lines.append(f"{icon} #{note.id} {heading}{note.content}")
    return "\n".join(lines)


def _render_achievements(service: WorkService) -> str:
    stats = service.stats()
    engine = service.achievements
    unlocked = engine.unlocked_ids
    lines = [f"Achievements: {len(engine.unlocked())}/{len(ACHIEVEMENTS)}"]
    for category, title in _CATEGORY_TITLES.items():
        lines.append("")
        lines.append(f"{title}:")
        for achievement in achievements_by_category(category):
            if achievement.id in unlocked:
                lines.append(f"{achievement.icon} {achievement.name} ✓")
            else:
                pct = get_progress(achievement, stats)
                lines.append(f"🔒 {achievement.name} — {pct:.0f}% of {achievement.requirement} {achievement.unit}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message."""
    await update.message.reply_text(
        "Welcome to FocusDay!\n\n"
        "• /work starts the timer, /stop ends it\n"
        "• /add <text> adds a task, /done <id> checks it off\n"
        "• /today shows where you stand\n\n"
        "Type /help for the full command list."
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(
        "Available commands:\n"
        "/today — Timer, goal progress and tasks\n"
        "/work — Start the work timer\n"
        "/stop — Stop the work timer\n"
        "/add <text> — Add a task for today\n"
        "/tasks — List today's tasks\n"
        "/done <id> — Toggle a task complete\n"
        "/delete <id> — Delete a task\n"
        "/stats — Streak and totals\n"
        "/week — Last 7 days\n"
        "/goal [minutes] — Show or set the daily focus goal\n"
        "/achievements — Unlocked and upcoming milestones\n"
        "/note [color] [title |] <text> — Pin a sticky note\n"
        "/notes — List sticky notes\n"
        "/editnote <id> [color] [title |] <text> — Rewrite a note\n"
        "/delnote <id> — Delete a note\n"
        "/help — Show this message"
    )


@authorized_only
async def cmd_today(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /today — timer, goal and today's tasks."""
    try:
        service = await _get_service(context, update.effective_user.id)
    except StoreError as exc:
        logger.error("/today store error: %s", exc)
        await update.message.reply_text("Couldn't load your day. Please try again later.")
        return
    await update.message.reply_text(_render_today(service))


@authorized_only
async def cmd_work(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /work — start the timer."""
    try:
        service = await _get_service(context, update.effective_user.id)
        if service.session_state is SessionState.ACTIVE:
            await update.message.reply_text(
                f"Timer already running: {format_elapsed(service.displayed_elapsed())}"
            )
            return
        await service.start_work()
    except StoreError as exc:
        logger.error("/work store error: %s", exc)
        await update.message.reply_text(_STORE_ERROR_REPLY)
        return
    await update.message.reply_text("⏱ Timer started. Use /stop when you're done.")


@authorized_only
async def cmd_stop(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /stop — stop the timer."""
    try:
        service = await _get_service(context, update.effective_user.id)
        if service.session_state is SessionState.IDLE:
            await update.message.reply_text("No timer running. Use /work to start one.")
            return
        session = await service.stop_work()
    except StoreError as exc:
        logger.error("/stop store error: %s", exc)
        await update.message.reply_text(_STORE_ERROR_REPLY)
        return
    await update.message.reply_text(
        f"⏹ Timer stopped. Worked today: {format_elapsed(session.duration)}"
    )


@authorized_only
async def cmd_add(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /add <text> — add a task for today."""
    text = " ".join(context.args or [])
    try:
        service = await _get_service(context, update.effective_user.id)
        task = await service.add_task(text)
    except ValidationError:
        await update.message.reply_text("Usage: /add <task text>")
        return
    except StoreError as exc:
        logger.error("/add store error: %s", exc)
        await update.message.reply_text(_STORE_ERROR_REPLY)
        return
    await update.message.reply_text(f"Added #{task.id}: {task.text}")


@authorized_only
async def cmd_tasks(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /tasks — list today's tasks."""
    try:
        service = await _get_service(context, update.effective_user.id)
    except StoreError as exc:
        logger.error("/tasks store error: %s", exc)
        await update.message.reply_text("Couldn't load tasks. Please try again.")
        return
    await update.message.reply_text(_render_tasks(service))


@authorized_only
async def cmd_done(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /done <id> — toggle a task."""
    task_id = _parse_id(context.args)
    if task_id is None:
        await update.message.reply_text("Usage: /done <task_id>\nUse /tasks to see IDs.")
        return

    try:
        service = await _get_service(context, update.effective_user.id)
        task = await service.toggle_task(task_id)
    except StoreError as exc:
        logger.error("/done error: %s", exc)
        await update.message.reply_text(f"Couldn't update task {task_id}. Please check the ID.")
        return

    mark = "✅ Completed" if task.completed else "↩️ Reopened"
    await update.message.reply_text(f"{mark}: {task.text}")


@authorized_only
async def cmd_delete(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /delete <id> — delete a task."""
    task_id = _parse_id(context.args)
    if task_id is None:
        await update.message.reply_text("Usage: /delete <task_id>\nUse /tasks to see IDs.")
        return

    try:
        service = await _get_service(context, update.effective_user.id)
        deleted = await service.delete_task(task_id)
    except StoreError as exc:
        logger.error("/delete error: %s", exc)
        await update.message.reply_text(_STORE_ERROR_REPLY)
        return

    if deleted:
        await update.message.reply_text(f"Deleted task #{task_id}.")
    else:
        await update.message.reply_text(f"Task #{task_id} not found.")


@authorized_only
async def cmd_stats(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /stats — streak and totals."""
    try:
        service = await _get_service(context, update.effective_user.id)
    except StoreError as exc:
        logger.error("/stats store error: %s", exc)
        await update.message.reply_text("Couldn't load stats. Please try again later.")
        return
    await update.message.reply_text(_render_stats(service))


@authorized_only
async def cmd_week(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /week — per-day breakdown of the last 7 days."""
    try:
        service = await _get_service(context, update.effective_user.id)
    except StoreError as exc:
        logger.error("/week store error: %s", exc)
        await update.message.reply_text("Couldn't load stats. Please try again later.")
        return
    await update.message.reply_text(_render_week(service))


@authorized_only
async def cmd_goal(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /goal [minutes] — show or set the daily focus goal."""
    try:
        service = await _get_service(context, update.effective_user.id)
        if not context.args:
            progress = service.goal_progress()
            await update.message.reply_text(
                f"Daily goal: {format_goal_minutes(service.goal.goal_minutes)} "
                f"({progress:.0f}% done today)\nSet it with /goal <minutes>."
            )
            return

        try:
            minutes = int(context.args[0])
        except ValueError:
            await update.message.reply_text("Goal must be a number of minutes, e.g. /goal 90")
            return

        await service.update_goal(minutes)
    except ValidationError as exc:
        await update.message.reply_text(str(exc))
        return
    except StoreError as exc:
        logger.error("/goal store error: %s", exc)
        await update.message.reply_text(_STORE_ERROR_REPLY)
        return

    await update.message.reply_text(f"🎯 Daily goal set to {format_goal_minutes(minutes)}.")


@authorized_only
async def cmd_achievements(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /achievements — unlocked and locked milestones with progress."""
    try:
        service = await _get_service(context, update.effective_user.id)
    except StoreError as exc:
        logger.error("/achievements store error: %s", exc)
        await update.message.reply_text("Couldn't load achievements. Please try again later.")
        return
    await update.message.reply_text(_render_achievements(service))


_NOTE_USAGE = (
    "Usage: /note [color] [title |] <text>\n"
    f"Colors: {', '.join(NOTE_COLORS)}"
)


@authorized_only
async def cmd_note(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /note [color] [title |] <text> — pin a sticky note."""
    content, title, color = _parse_note_args(context.args or [])
    try:
        service = await _get_service(context, update.effective_user.id)
        note = await service.add_note(content, title, color)
    except ValidationError:
        await update.message.reply_text(_NOTE_USAGE)
        return
    except StoreError as exc:
        logger.error("/note store error: %s", exc)
        await update.message.reply_text(_STORE_ERROR_REPLY)
        return
    await update.message.reply_text(f"📌 Note #{note.id} pinned.")


@authorized_only
async def cmd_notes(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /notes — list sticky notes, newest first."""
    try:
        service = await _get_service(context, update.effective_user.id)
        notes = await service.list_notes()
    except StoreError as exc:
        logger.error("/notes store error: %s", exc)
        await update.message.reply_text("Couldn't load notes. Please try again.")
        return
    await update.message.reply_text(_render_notes(notes))


@authorized_only
async def cmd_editnote(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /editnote <id> [color] [title |] <text> — rewrite a note."""
    note_id = _parse_id(context.args)
    if note_id is None:
        await update.message.reply_text("Usage: /editnote <note_id> [color] [title |] <text>")
        return

    content, title, color = _parse_note_args(context.args[1:])
    try:
        service = await _get_service(context, update.effective_user.id)
        await service.update_note(note_id, content, title, color)
    except ValidationError:
        await update.message.reply_text(_NOTE_USAGE)
        return
    except StoreError as exc:
        logger.error("/editnote error: %s", exc)
        await update.message.reply_text(f"Couldn't update note {note_id}. Please check the ID.")
        return
    await update.message.reply_text(f"Note #{note_id} updated.")


@authorized_only
async def cmd_delnote(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /delnote <id> — delete a sticky note."""
    note_id = _parse_id(context.args)
    if note_id is None:
        await update.message.reply_text("Usage: /delnote <note_id>\nUse /notes to see IDs.")
        return

    try:
        service = await _get_service(context, update.effective_user.id)
        deleted = await service.delete_note(note_id)
    except StoreError as exc:
        logger.error("/delnote error: %s", exc)
        await update.message.reply_text(_STORE_ERROR_REPLY)
        return

    if deleted:
        await update.message.reply_text(f"Deleted note #{note_id}.")
    else:
        await update.message.reply_text(f"Note #{note_id} not found.")


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(
    store: RecordStorePort | None = None,
    notifier: NotificationPort | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        store: Record store implementation. Defaults to SQLiteRecordStore.
        notifier: Notification port implementation. Defaults to TelegramNotifier
                  (created from the bot instance after app is built).
    """
    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    if store is None:
        from focusday.adapters.sqlite_store import SQLiteRecordStore
        store = SQLiteRecordStore()

    if notifier is None:
        from focusday.adapters.telegram_notifier import TelegramNotifier
        notifier = TelegramNotifier(app.bot)

    # Store ports in bot_data for handler access
    app.bot_data["store"] = store
    app.bot_data["notifier"] = notifier
    app.bot_data["services"] = {}

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("today", cmd_today))
    app.add_handler(CommandHandler("work", cmd_work))
    app.add_handler(CommandHandler("stop", cmd_stop))
    app.add_handler(CommandHandler("add", cmd_add))
    app.add_handler(CommandHandler("tasks", cmd_tasks))
    app.add_handler(CommandHandler("done", cmd_done))
    app.add_handler(CommandHandler("delete", cmd_delete))
    app.add_handler(CommandHandler("stats", cmd_stats))
    app.add_handler(CommandHandler("week", cmd_week))
    app.add_handler(CommandHandler("goal", cmd_goal))
    app.add_handler(CommandHandler("achievements", cmd_achievements))
    app.add_handler(CommandHandler("note", cmd_note))
    app.add_handler(CommandHandler("notes", cmd_notes))
    app.add_handler(CommandHandler("editnote", cmd_editnote))
    app.add_handler(CommandHandler("delnote", cmd_delnote))

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting FocusDay bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
