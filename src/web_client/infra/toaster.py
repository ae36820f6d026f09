from __future__ import annotations

from nicegui import ui

from src.core.notifications.service import Toast

# Короткий сигнал нового заказа (WebAudio, без файлов)
_CHIME_JS = """
try {
    const ctx = new (window.AudioContext || window.webkitAudioContext)();
    const osc = ctx.createOscillator();
    const gain = ctx.createGain();
    osc.connect(gain);
    gain.connect(ctx.destination);
    osc.frequency.value = 880;
    gain.gain.setValueAtTime(0.3, ctx.currentTime);
    gain.gain.exponentialRampToValueAtTime(0.01, ctx.currentTime + 0.5);
    osc.start();
    osc.stop(ctx.currentTime + 0.5);
} catch (e) {
    console.warn("Notification sound failed", e);
}
"""


class NiceGuiToaster:
    """Показывает Toast через ui.notify."""

    def show(self, toast: Toast) -> None:
        message = toast.title if not toast.description else f"{toast.title}: {toast.description}"
        options = {}
        if toast.duration:
            options["timeout"] = int(toast.duration * 1000)
        ui.notify(
            message,
            type="negative" if toast.is_error else "positive",
            position="top-right",
            **options,
        )


class NiceGuiSoundPlayer:
    """Проигрывает сигнал нового заказа в браузере."""

    def play(self) -> None:
        ui.run_javascript(_CHIME_JS)
