# -*- coding: utf-8 -*-
"""
@FileName    : settings.py
@Author      : jiaxin
@Date        : 2026/1/10
@Time        : 17:30
@Description :
配置加载：init 参数 > 环境变量(REGISTRY_ROUTER_*) > .env > secrets > config.yaml
"""
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse
from pydantic import BaseModel, model_validator, field_validator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource
from functools import lru_cache
import yaml

CONFIG_ENV = "REGISTRY_ROUTER_CONFIG"
DEFAULT_CONFIG_FILE = "config.yaml"


class ListenConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000


class HTTPSConfig(BaseModel):
    """监听端 TLS；启用时证书与私钥都必须是已存在的文件"""
    enabled: bool = False
    cert: Optional[str] = None
    key: Optional[str] = None

    @model_validator(mode='after')
    def require_tls_files(self):
        if not self.enabled:
            return self
        for label, value in (("cert", self.cert), ("key", self.key)):
            if not value:
                raise ValueError(f"https.{label} is required when https.enabled is true")
            if not Path(value).is_file():
                raise ValueError(f"https.{label} does not point to a file: {value}")
        return self


class RegistryConfig(BaseModel):
    """单个上游注册表；packages 为空表示该注册表是兜底（公共）源"""
    url: str
    packages: List[str] = Field(default_factory=list)

    @model_validator(mode='before')
    @classmethod
    def accept_bare_url(cls, data: Any) -> Any:
        # YAML 中允许直接写 URL 字符串
        if isinstance(data, str):
            return {"url": data}
        return data

    @field_validator('url')
    @classmethod
    def validate_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Registry url must be an absolute http(s) URL: {value}")
        return value.rstrip("/")


class Settings(BaseSettings):
    listen: ListenConfig = Field(default_factory=ListenConfig)
    https: HTTPSConfig = Field(default_factory=HTTPSConfig)
    registries: List[RegistryConfig] = Field(
        default_factory=lambda: [RegistryConfig(url="https://registry.npmjs.org")],
        description="Ordered upstream registries, index = precedence",
    )
    vhosts: List[str] = Field(default_factory=list, description="Externally visible host names")
    public_host: Optional[str] = None
    public_scheme: Optional[str] = None
    rewrite_tarballs: bool = True
    timeout: float = 30.0
    admin_paths: List[str] = Field(default_factory=lambda: ["/_utils", "/_utils/*"])
    log_level: str = "INFO"

    @field_validator('vhosts')
    @classmethod
    def normalize_vhosts(cls, value: List[str]) -> List[str]:
        return [v.strip().lower() for v in value if v.strip()]

    @field_validator('public_scheme')
    @classmethod
    def validate_public_scheme(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in ("http", "https"):
            raise ValueError(f"public_scheme must be 'http' or 'https': {value}")
        return value

    @model_validator(mode='after')
    def validate_registries(self):
        if not self.registries:
            raise ValueError("At least one entry in 'registries' is required")
        if self.timeout <= 0:
            raise ValueError("'timeout' must be positive")
        return self

    @classmethod
    def settings_customise_sources(
            cls,
            settings_cls,
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
    ):
        class YamlSettingsSource(PydanticBaseSettingsSource):
            def get_field_value(self, field_name: str, field: Any) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> Dict[str, Any]:
                config_file = os.environ.get(CONFIG_ENV, DEFAULT_CONFIG_FILE)
                if Path(config_file).exists():
                    with open(config_file, "r", encoding="utf-8") as f:
                        return yaml.safe_load(f) or {}
                return {}

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
            YamlSettingsSource(settings_cls),
        )

    model_config = SettingsConfigDict(
        env_prefix="REGISTRY_ROUTER_",
        case_sensitive=False,
        extra="forbid",  # 禁止未定义字段
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
