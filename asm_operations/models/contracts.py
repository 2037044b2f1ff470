"""Pydantic wire contracts for service payloads.

The Service Management API answers in XML while newer endpoints answer in
JSON, and casing differs between them.  Each model accepts every spelling
through ``AliasChoices`` so a single schema validates both; the XML
documents are flattened into dicts before validation (see
``asm_operations.operations._status_parser``).
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from asm_operations.models.operation import OperationResult, OperationStatus


class ErrorDetailsPayload(BaseModel):
    """``{code, message}`` pair nested in status and error bodies."""

    model_config = ConfigDict(extra="ignore")

    code: str | None = Field(default=None, validation_alias=AliasChoices("code", "Code"))
    message: str | None = Field(
        default=None,
        validation_alias=AliasChoices("message", "Message"),
    )


class OperationStatusPayload(BaseModel):
    """Body of an operation-status resource.

    Accepts flat (``errorCode``/``errorMessage``) or nested (``error``)
    failure details; flat values take precedence.
    """

    model_config = ConfigDict(extra="ignore")

    result: OperationResult = Field(
        validation_alias=AliasChoices("result", "Result", "status", "Status"),
    )
    error_code: str | None = Field(
        default=None,
        validation_alias=AliasChoices("errorCode", "ErrorCode", "error_code"),
    )
    error_message: str | None = Field(
        default=None,
        validation_alias=AliasChoices("errorMessage", "ErrorMessage", "error_message"),
    )
    error: ErrorDetailsPayload | None = Field(
        default=None,
        validation_alias=AliasChoices("error", "Error"),
    )
    operation_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("id", "ID", "Id", "operationId", "OperationId"),
    )
    http_status_code: int | None = Field(
        default=None,
        validation_alias=AliasChoices("httpStatusCode", "HttpStatusCode"),
    )

    @field_validator("result", mode="before")
    @classmethod
    def _fold_result(cls, value: object) -> object:
        # Services disagree on casing ("InProgress", "inProgress", "IN_PROGRESS").
        if isinstance(value, str):
            return OperationResult(value.strip())
        return value

    def to_status(self) -> OperationStatus:
        nested = self.error or ErrorDetailsPayload()
        return OperationStatus(
            result=self.result,
            error_code=self.error_code or nested.code,
            error_message=self.error_message or nested.message,
            operation_id=self.operation_id,
            http_status_code=self.http_status_code,
        )


class ServiceErrorPayload(BaseModel):
    """Error body returned with a non-success HTTP status.

    Either ``{"Code": ..., "Message": ...}`` or ``{"error": {...}}``.
    """

    model_config = ConfigDict(extra="ignore")

    code: str | None = Field(default=None, validation_alias=AliasChoices("code", "Code"))
    message: str | None = Field(
        default=None,
        validation_alias=AliasChoices("message", "Message"),
    )
    error: ErrorDetailsPayload | None = Field(
        default=None,
        validation_alias=AliasChoices("error", "Error"),
    )

    @property
    def effective_code(self) -> str:
        return self.code or (self.error.code if self.error else None) or ""

    @property
    def effective_message(self) -> str:
        return self.message or (self.error.message if self.error else None) or ""
