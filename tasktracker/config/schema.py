"""模块说明：schema。"""

from pathlib import Path
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WhatsAppConfig(BaseModel):
    """类说明：WhatsAppConfig。"""
    bridge_url: str = "ws://localhost:3001"
    connect_timeout: float = 20.0  # 打开 websocket 的超时时间（秒）
    login_timeout: float = 30.0  # 使用已有凭据登录时等待 connected 状态的时间
    reconnect_delay: float = 5.0


class AirtableConfig(BaseModel):
    """类说明：AirtableConfig。"""
    api_base: str = "https://api.airtable.com/v0"
    base_id: str = ""
    table_id: str = ""
    api_key: str = ""  # Personal access token
    timeout: float = 10.0
    max_retries: int = 1  # 仅对连接阶段失败重试

    @property
    def records_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/{self.base_id}/{self.table_id}"


class SessionConfig(BaseModel):
    """类说明：SessionConfig。"""
    path: str = "session.db"


class GatewayConfig(BaseModel):
    """类说明：GatewayConfig。"""
    host: str = "0.0.0.0"
    port: int = 8080


class Config(BaseSettings):
    """类说明：Config。"""
    owner_jid: str = ""  # 所有结果通知都发送到这个 JID
    log_level: str = "INFO"
    whatsapp: WhatsAppConfig = Field(default_factory=WhatsAppConfig)
    airtable: AirtableConfig = Field(default_factory=AirtableConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)

    model_config = SettingsConfigDict(
        env_prefix="TASKTRACKER_",
        env_nested_delimiter="__",
    )

    @property
    def session_path(self) -> Path:
        """函数说明：session_path。"""
        return Path(self.session.path).expanduser()
