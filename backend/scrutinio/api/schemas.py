"""Request bodies for the JSON operation surface.

Field names follow the web client (camelCase). The older client's Italian
names are accepted as aliases. Every field is optional at this layer: the
ledger and the engine decide what is required, so a missing field gets the
same error message whichever way the operation is called.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True, extra="ignore")


class CredentialsRequest(RequestModel):
    username: str = ""
    password: str = ""


class UserRequest(RequestModel):
    user_id: str = Field(default="", alias="userId")


class CreateBetRequest(RequestModel):
    user_id: str = Field(default="", alias="userId")
    subject: str = ""
    outcome: str | None = Field(default=None, validation_alias=AliasChoices("outcome", "esito"))
    stance: str | None = None
    probation_detail: list[dict[str, Any]] | None = Field(
        default=None, validation_alias=AliasChoices("probation_detail", "probationDetail", "sospensione")
    )


class JoinBetRequest(RequestModel):
    user_id: str = Field(default="", alias="userId")
    bet_id: str = Field(default="", alias="betId")
    stance: str | None = None


class TerminateBetRequest(RequestModel):
    user_id: str = Field(default="", alias="userId")
    bet_id: str = Field(default="", alias="betId")
    realized: bool | None = None


class DeleteBetRequest(RequestModel):
    user_id: str = Field(default="", alias="userId")
    bet_id: str = Field(default="", alias="betId")


class UpdateUserRequest(RequestModel):
    user_id: str = Field(default="", alias="userId")
    new_username: str | None = Field(default=None, alias="newUsername")
    new_password: str | None = Field(default=None, alias="newPassword")


class AdminRequest(RequestModel):
    """Admin identity: either a user id or a username/password pair."""

    user_id: str = Field(default="", alias="userId")
    username: str = ""
    password: str = ""


class MigrateRequest(RequestModel):
    promote_username: str = Field(
        default="", validation_alias=AliasChoices("promoteUsername", "make_admin_username")
    )
    promote_user_id: str = Field(
        default="", validation_alias=AliasChoices("promoteUserId", "make_admin_userId")
    )
