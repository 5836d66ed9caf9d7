import numpy as np
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "groupbms"

    # Variational Bayes
    VB_TOLERANCE: float = Field(default=1e-4, gt=0)
    VB_MAX_ITERATIONS: int = Field(default=1000, ge=1)

    # Exceedance sampling
    XP_SAMPLES: int = Field(default=1_000_000, ge=1)
    XP_MAX_BLOCK_BYTES: int = Field(default=2**28, ge=1)  # 256 MiB per block of float64 draws
    XP_SEED: int | None = None

    # Guard against log(0) in the entropy terms (MATLAB eps)
    LOG_EPS: float = Field(default=float(np.finfo(np.float64).eps), gt=0)

    model_config = {"env_prefix": "GROUPBMS_", "env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
