from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from flask import Flask, Response, jsonify, request

from farmbot.core.config import get_config
from farmbot.core.logging import init_logging, tail
from farmbot.runtime.service import CLICK_MODES, FarmingRuntime
from farmbot.ui.hotkeys import HotkeyManager


def create_app(runtime: Optional[FarmingRuntime] = None, *, hotkeys: bool = True) -> Flask:
    app = Flask(__name__, static_folder=None)
    logger = init_logging(level=os.environ.get("LOG_LEVEL", "INFO"))
    rt = runtime or FarmingRuntime()
    app.config["RUNTIME"] = rt
    if hotkeys:
        # Ctrl+Alt+P (pause/resume), Ctrl+Alt+O (kill)
        hk = HotkeyManager(
            on_pause_toggle=lambda: _toggle_pause(rt, logger),
            on_kill=lambda: _kill_process(logger),
        )
        hk.start()

    @app.post("/api/start")
    def api_start():
        data: Dict[str, Any] = request.get_json(force=True, silent=True) or {}
        click_mode = data.get("click_mode")
        if click_mode is not None and click_mode not in CLICK_MODES:
            return jsonify({"error": f"click_mode must be one of {list(CLICK_MODES)}"}), 400
        rt.start(click_mode=click_mode)
        logger.info("api/start | click_mode=%s", rt.status.click_mode)
        return jsonify({"ok": True})

    @app.post("/api/pause")
    def api_pause():
        rt.pause()
        logger.info("api/pause")
        return jsonify({"ok": True})

    @app.post("/api/stop")
    def api_stop():
        rt.stop()
        logger.info("api/stop")
        return jsonify({"ok": True})

    @app.get("/api/status")
    def api_status():
        out = rt.snapshot()
        out["controller"] = rt.controller.snapshot()
        return jsonify(out)

    @app.get("/api/config")
    def api_config():
        return jsonify(rt.controller.config.to_dict())

    @app.post("/api/config/reload")
    def api_config_reload():
        config = rt.reload_config()
        logger.info("api/config/reload")
        return jsonify(config.to_dict())

    @app.get("/api/timeline")
    def api_timeline():
        try:
            n = int(request.args.get("n", 50))
        except ValueError:
            return jsonify({"error": "n must be an integer"}), 400
        return jsonify(rt.get_timeline(n))

    @app.get("/api/logs/tail")
    def api_logs_tail():
        try:
            n = int(request.args.get("n", 200))
        except ValueError:
            return jsonify({"error": "n must be an integer"}), 400
        text = tail(n)
        if text is None:
            return ("", 204)
        return Response(text, mimetype="text/plain")

    return app


def _toggle_pause(rt: FarmingRuntime, logger: logging.Logger) -> None:
    s = rt.status
    if s.running and not s.paused:
        rt.pause()
        logger.info("hotkey: pause")
    else:
        rt.start()
        logger.info("hotkey: resume/start")


def _kill_process(logger: logging.Logger) -> None:
    logger.critical("hotkey: kill process")
    os._exit(0)


def main() -> None:
    try:
        app = create_app()
    except ValueError as exc:
        profile = get_config().config_dir / "profile.yml"
        logging.getLogger("farmbot.server").critical(
            "startup | %s | set analyzer: \"module:ClassName\" in %s", exc, profile
        )
        raise SystemExit(2) from exc
    port = int(os.environ.get("PORT", "8083"))
    app.run(host="127.0.0.1", port=port, debug=False, threaded=True)


if __name__ == "__main__":
    main()
