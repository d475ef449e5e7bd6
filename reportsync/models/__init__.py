from reportsync.models.exchange_rate import ExchangeRate
from reportsync.models.report_run import ReportRun
from reportsync.models.report_snapshot import ReportSnapshot
from reportsync.models.setting import Setting

__all__ = [
    "ExchangeRate",
    "ReportRun",
    "ReportSnapshot",
    "Setting",
]
