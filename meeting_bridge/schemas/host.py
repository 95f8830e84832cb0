from enum import StrEnum

from pydantic import BaseModel


class ChannelType(StrEnum):
    open = "O"
    private = "P"
    direct = "D"
    group = "G"


class HostUser(BaseModel):
    id: str
    username: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""


class HostChannel(BaseModel):
    id: str
    name: str = ""
    display_name: str = ""
    type: ChannelType = ChannelType.open
    team_id: str = ""

    @property
    def is_direct(self) -> bool:
        return self.type == ChannelType.direct

    def other_user_id_for_dm(self, user_id: str) -> str:
        if not self.is_direct:
            return ""
        user_ids = self.name.split("__")
        if len(user_ids) != 2 or user_ids[0] == user_ids[1]:
            return ""
        if user_ids[0] == user_id:
            return user_ids[1]
        return user_ids[0]


class HostAppError(BaseModel):
    id: str = ""
    message: str = ""
    detailed_error: str = ""
    status_code: int = 0

    def describe(self) -> str:
        if self.message:
            return self.message
        if self.detailed_error:
            return self.detailed_error
        if self.id:
            return f"AppError (id: {self.id})"
        return "unknown error"


class HostPost(BaseModel):
    channel_id: str
    user_id: str
    message: str
    root_id: str = ""
