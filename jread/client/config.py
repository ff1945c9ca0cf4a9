from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    # 这两个值必须配置，否则客户端拒绝初始化
    API_URL: str = ""
    ANON_KEY: str = ""

    API_PREFIX: str = "/api/v1"
    TIMEOUT: float = 10.0

    # 编辑器自动保存
    AUTOSAVE_DELAY: float = 2.0  # 最后一次编辑后静默多久触发保存（秒）
    AUTOSAVE_RETRY_DELAY: float = 2.0  # 保存失败后多久重新进入 dirty

    @property
    def is_configured(self) -> bool:
        return bool(self.API_URL.strip()) and bool(self.ANON_KEY.strip())

    @property
    def base_url(self) -> str:
        return self.API_URL.rstrip("/") + self.API_PREFIX

    model_config = {
        "env_prefix": "JREAD_",
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore"
    }
