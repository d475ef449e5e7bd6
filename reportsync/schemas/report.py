import datetime

from pydantic import BaseModel, Field, field_validator

from reportsync.models.report_run import RunStatus


class UrlPair(BaseModel):
    """A data source and the report sheet it feeds.

    Both are sheet references understood by the configured backend, e.g.
    ``stores/north.xlsx#Data``.
    """

    data_url: str = Field(..., min_length=1, max_length=1000)
    report_url: str = Field(..., min_length=1, max_length=1000)

    @field_validator("data_url", "report_url")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Both data URL and report URL are required for each pair")
        return value


class ReportConfigUpdate(BaseModel):
    url_pairs: list[UrlPair] = Field(..., min_length=1)
    summary_report_url: str | None = Field(default=None, max_length=1000)

    @field_validator("summary_report_url")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class ReportConfig(BaseModel):
    url_pairs: list[UrlPair] = []
    summary_report_url: str | None = None
    configured_at: datetime.datetime | None = None

    @property
    def configured(self) -> bool:
        return bool(self.url_pairs)


class GenerateRequest(BaseModel):
    # Defaults to today in the report timezone
    date: datetime.date | None = None


class RunLogResponse(BaseModel):
    id: int
    report_date: datetime.date
    pair_index: int
    report_url: str
    status: RunStatus
    stores_processed: int
    changed_stores: int
    total_spend: float
    total_benefit: float
    start_column: str | None
    error_message: str | None
    created_at: datetime.datetime

    model_config = {"from_attributes": True}
