from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import Literal, Optional


class Settings(BaseSettings):
    # Debug settings
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    PROJECT_NAME: str = "memwatch"

    # HTTP settings
    HTTP_HOST: str = "0.0.0.0"
    HTTP_PORT: int = 8080

    # Kubernetes settings
    # Namespace holding the operating ConfigMap; the downward API sets it in-cluster
    POD_NAMESPACE: str = "monitor"
    CONFIGMAP_NAME: str = "mysql-config"
    KUBECONFIG: Optional[str] = None  # Only used outside the cluster
    KUBE_REQUEST_TIMEOUT: float = 10.0  # seconds, per API call

    # Database
    DATABASE_DRIVER: str = "mysql+pymysql"
    ROW_SHAPE: Literal["mem_info", "totals"] = "mem_info"
    CREATE_TABLES: bool = True

    @field_validator("POD_NAMESPACE")
    @classmethod
    def default_namespace(cls, value: str) -> str:
        return value.strip() or "monitor"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
