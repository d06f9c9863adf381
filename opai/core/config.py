from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    APP_NAME: str = Field("OpaiPayroll", description="Logger namespace prefix")
    LOG_LEVEL: str = Field("INFO", description="Root level for tenant loggers")
    AUDIT_LOG_PATH: str = Field("./data/logs", description="Directory for rotating logs and JSONL audit trails")
    DB_URL: str = Field("sqlite:///./data/opai.db", description="Database URL")

    # Worker affiliation defaults (Chile)
    DEFAULT_AFP_NAME: str = "habitat"
    AFP_BASE_RATE: float = 0.10
    FONASA_RATE: float = 0.07
    DEFAULT_HEALTH_PLAN_PCT: float = 0.07

    # Ley 16.744 basic rate, used when a version carries no work-injury table
    DEFAULT_WORK_INJURY_RISK: str = "medium"
    FALLBACK_WORK_INJURY_RATE: float = 0.0093

    # Provisions for employer costing (CPQ)
    DEFAULT_VACATION_PROVISION_PCT: float = 0.0833
    DEFAULT_SEVERANCE_PROVISION_PCT: float = 0.04166

    # Art. 32 CT hour normalization and surcharges
    DEFAULT_TOTAL_DAYS_MONTH: int = 30
    HOURS_PER_DAY: int = 8
    OVERTIME_50_FACTOR: float = 1.5
    OVERTIME_100_FACTOR: float = 2.0
    HOLIDAY_SURCHARGE_FACTOR: float = 2.0

settings = Settings()
