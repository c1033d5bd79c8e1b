"""Default configuration values for SecOps Warden."""

from __future__ import annotations

DEFAULT_CONFIG: dict[str, dict[str, object]] = {
    "service": {
        "log_level": "info",
        "host": "127.0.0.1",
        "port": 18789,
    },
    "engine": {
        "backend": "anthropic",
        "anthropic_key": "",
        "anthropic_model": "claude-sonnet-4-20250514",
        "ollama_host": "http://localhost:11434",
        "ollama_model": "llama3.1:8b",
        "system_prompt": "",
        "max_tool_iterations": 10,
        "tool_timeout_seconds": 60,
    },
    "secops": {
        "enabled": True,
        "notification_capacity": 10,
        "clickhouse": {"addr": "localhost:8123", "username": "", "password": ""},
        "sheikah": {"base_url": "http://localhost:8080", "api_key": ""},
        "queries": {},
        "endpoints": {},
        "activities": {
            "risk_analysis": {"enabled": True, "schedule": "30m", "mode": "manual"},
            "weak_analysis": {"enabled": True, "schedule": "30m", "mode": "manual"},
            "api_biz_explain": {"enabled": False, "schedule": "1h", "mode": "manual"},
            "app_explain": {"enabled": False, "schedule": "1h", "mode": "manual"},
        },
    },
}
