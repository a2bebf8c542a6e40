import yaml
import os
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field

# 7 days in seconds
EVENT_DEDUP_TTL_SECONDS = 7 * 24 * 60 * 60


class RedisConfig(BaseModel):
    url: str = "redis://localhost:6379/0"
    password: Optional[str] = None
    socket_timeout_seconds: float = 5.0


class VapidConfig(BaseModel):
    """VAPID credentials used to sign Web Push requests."""
    subject: Optional[str] = None  # e.g. "mailto:admin@example.com"
    public_key: Optional[str] = None  # base64url
    private_key: Optional[str] = None  # base64url or PEM path

    @property
    def is_complete(self) -> bool:
        return bool(self.subject and self.public_key and self.private_key)


class PushConfig(BaseModel):
    """
    Configuration for the push delivery pipeline.
    """
    vapid: VapidConfig = Field(default_factory=VapidConfig)
    transport: str = "webpush"  # "webpush" or "dry_run"

    # Dedup markers expire after this many seconds
    event_dedup_ttl_seconds: int = EVENT_DEDUP_TTL_SECONDS

    # Stale endpoint pruning on the RQ queue instead of inline
    use_async_queue: bool = False
    queue_name: str = "push-maintenance"

    # slowapi limit string applied to every push route
    rate_limit: str = "60/minute"

    send_timeout_seconds: float = 10.0


class WebConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080


class LoggingConfig(BaseModel):
    level: str = "INFO"


class AppConfig(BaseModel):
    redis: RedisConfig = Field(default_factory=RedisConfig)
    push: PushConfig = Field(default_factory=PushConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _section(data: Dict[str, Any], *path: str) -> Dict[str, Any]:
    """Return the nested dict at ``path``, creating empty dicts on the way."""
    node = data
    for key in path:
        if not isinstance(node.get(key), dict):
            node[key] = {}
        node = node[key]
    return node


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    env = os.environ

    if env.get("REDIS_URL"):
        _section(data, 'redis')['url'] = env["REDIS_URL"]
    if env.get("REDIS_PASSWORD"):
        _section(data, 'redis')['password'] = env["REDIS_PASSWORD"]

    # VAPID keys normally only live in the environment
    if env.get("VAPID_SUBJECT"):
        _section(data, 'push', 'vapid')['subject'] = env["VAPID_SUBJECT"]
    if env.get("VAPID_PUBLIC_KEY"):
        _section(data, 'push', 'vapid')['public_key'] = env["VAPID_PUBLIC_KEY"]
    if env.get("VAPID_PRIVATE_KEY"):
        _section(data, 'push', 'vapid')['private_key'] = env["VAPID_PRIVATE_KEY"]

    if env.get("PUSH_USE_ASYNC_QUEUE"):
        _section(data, 'push')['use_async_queue'] = env["PUSH_USE_ASYNC_QUEUE"].lower() in ('true', '1', 'yes')
    if env.get("PUSH_RATE_LIMIT"):
        _section(data, 'push')['rate_limit'] = env["PUSH_RATE_LIMIT"]

    if env.get("WEB_HOST"):
        _section(data, 'web')['host'] = env["WEB_HOST"]
    if env.get("WEB_PORT"):
        _section(data, 'web')['port'] = int(env["WEB_PORT"])

    if env.get("LOG_LEVEL"):
        _section(data, 'logging')['level'] = env["LOG_LEVEL"]

    return data


def load_config(config_path: str = "config.yaml") -> AppConfig:
    # If not found at relative path (e.g. running from root), try the project root
    if not os.path.exists(config_path):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(base_dir, "..", "config.yaml")

    data: Dict[str, Any] = {}
    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}

    return AppConfig(**_apply_env_overrides(data))
