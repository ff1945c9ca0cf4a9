class ConfigurationRequiredError(RuntimeError):
    """JREAD_API_URL / JREAD_ANON_KEY 未配置"""

    message = (
        "J Read is not configured. Set JREAD_API_URL and JREAD_ANON_KEY "
        "in the environment or .env file."
    )

    def __init__(self, message: str = None):
        super().__init__(message or self.message)


class ApiError(Exception):
    """服务端返回非2xx，或网络请求失败（status_code 为 None）"""

    def __init__(self, status_code, detail):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_forbidden(self) -> bool:
        return self.status_code == 403


class AuthRequiredError(Exception):
    """需要登录的操作（界面上弹出登录框）"""


class EditorBusyError(Exception):
    """正在保存时不能手动保存"""
