from pydantic import BaseModel


class PluginConfiguration(BaseModel):
    webhook_url: str = ""
    open_in_new_tab: bool = True
    service_name: str = ""

    @property
    def webhook_configured(self) -> bool:
        return bool(self.webhook_url)


class PluginConfigurationResponse(BaseModel):
    webhook_url: str
    open_in_new_tab: bool
    service_name: str
