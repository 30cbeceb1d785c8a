"""Declarations shared by the concrete entity modules."""

from stormrocks.domain.views import DateTimeView, TimeFromNowView

LAST_UPDATE_USER = "Users,User,LastUpdateId,false,"  # pragma: no mutate

STANDARD_VIEWS = {
    "UpdateDate": DateTimeView("UpdateDate"),
    "UpdateFromNow": TimeFromNowView("UpdateDate"),
}
