from pydantic import BaseModel, ConfigDict
from typing import Dict


class FxRatesPayload(BaseModel):
    """USD-based latest rates, e.g. {"result": "success", "rates": {"KRW": 1300.0, "JPY": 110.0}}."""
    model_config = ConfigDict(extra="ignore")

    rates: Dict[str, float]
