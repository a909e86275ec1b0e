from datetime import datetime, timezone

from sqlalchemy import event

from leadintake.models.agent import Agent
from leadintake.models.crm_setting import CrmSetting
from leadintake.models.lead import Lead


# Auto updated_at
@event.listens_for(Lead, "before_update")
@event.listens_for(Agent, "before_update")
@event.listens_for(CrmSetting, "before_update")
def update_timestamp(mapper, connection, target):
    target.updated_at = datetime.now(timezone.utc)


# Country codes are stored upper case so tier and zone lookups match
@event.listens_for(Lead, "before_insert")
@event.listens_for(Lead, "before_update")
def normalise_country_code(mapper, connection, target):
    if target.country_code:
        target.country_code = target.country_code.strip().upper()
