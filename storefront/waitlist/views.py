import logging

from fastapi import APIRouter, Depends, Request

from storefront.utils.rate_limit import optional_rate_limit
from storefront.utils.validators import read_json, validate_email
from storefront.waitlist import repository as waitlist_repo

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/waitlist", tags=["Waitlist API"])

@router.post("", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
async def join_waitlist(request: Request):
    body = await read_json(request)
    email = validate_email(body.get("email"))
    if waitlist_repo.insert_waitlist_email(email) is None:
        return {"message": "Already on the list."}
    logger.info("waitlist.joined email=%s", email)
    return {"message": "Added to waitlist."}
