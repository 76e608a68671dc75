"""配置：从环境变量读取引擎参数（.env 由入口处的 load_dotenv 加载）"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .errors import ConfigError

ENV_PREFIX = "PLAINTEST_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass
class EngineConfig:
    """引擎配置"""
    locate_timeout: float = 10.0  # 单次 locate 的总超时（秒）
    poll_interval: float = 0.1  # 首次重试间隔
    max_poll_interval: float = 1.0  # 退避上限
    command_delay: float = 0.0  # 每条命令前的停顿，模拟人工节奏
    demo: bool = False  # 高亮定位到的元素
    headless: bool = True
    output_dir: str = "reports"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        env = os.environ if environ is None else environ
        defaults = cls()
        config = cls(
            locate_timeout=_float(env, "LOCATE_TIMEOUT", defaults.locate_timeout),
            poll_interval=_float(env, "POLL_INTERVAL", defaults.poll_interval),
            max_poll_interval=_float(env, "MAX_POLL_INTERVAL", defaults.max_poll_interval),
            command_delay=_float(env, "COMMAND_DELAY", defaults.command_delay),
            demo=_bool(env, "DEMO", defaults.demo),
            headless=_bool(env, "HEADLESS", defaults.headless),
            output_dir=env.get(ENV_PREFIX + "OUTPUT_DIR", defaults.output_dir),
        )
        config.validate()
        return config

    def validate(self):
        if self.locate_timeout < 0:
            raise ConfigError("locate_timeout must not be negative")
        if self.poll_interval <= 0 or self.max_poll_interval <= 0:
            raise ConfigError("poll intervals must be positive")
        if self.command_delay < 0:
            raise ConfigError("command_delay must not be negative")


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(ENV_PREFIX + key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{ENV_PREFIX}{key} must be a number, got {raw!r}") from None


def _bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(ENV_PREFIX + key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{ENV_PREFIX}{key} must be true or false, got {raw!r}")
