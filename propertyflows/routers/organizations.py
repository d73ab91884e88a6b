"""Business registration and self-service trial activation."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..exceptions import (
  ActivationError,
  BillingProviderError,
  InvalidPlanError,
  MissingFieldsError,
  VerificationError,
)
from ..logger import get_logger, log_app_error
from ..models.api import ActivateTrialRequest, BusinessRegistrationRequest
from ..models.iam import Organization
from ..operations.billing import SubscriptionActivator
from ..operations.verification import register_business

logger = get_logger(__name__)

router = APIRouter(prefix="/api/organizations", tags=["organizations"])


@router.post(
  "/register",
  status_code=status.HTTP_201_CREATED,
  summary="Register Business",
  description="""Register a business for PropertyFlows.

The registration runs a fraud check on the contact details and a risk score on
the license, tax id, address and name. The organization is stored in every
case; its verification status decides whether it waits for an admin.""",
  operation_id="registerBusiness",
)
async def register(
  request: Request,
  body: BusinessRegistrationRequest,
  db: Session = Depends(get_db_session),
):
  try:
    outcome = register_business(
      body, db, ip_address=request.client.host if request.client else None
    )
    return outcome.to_response()

  except MissingFieldsError as e:
    raise HTTPException(
      status_code=400,
      detail={"message": e.message, "missing_fields": e.missing_fields},
    )
  except VerificationError as e:
    raise HTTPException(
      status_code=400, detail={"message": e.message, "details": e.flags}
    )
  except Exception as e:
    log_app_error(e, component="organizations", action="register")
    raise HTTPException(
      status_code=500, detail="Failed to register business. Please try again."
    )


@router.post(
  "/{org_id}/activate-trial",
  summary="Activate Trial",
  description="Start the trial subscription of an approved organization.",
  operation_id="activateTrial",
)
async def activate_trial(
  org_id: str,
  body: ActivateTrialRequest | None = None,
  db: Session = Depends(get_db_session),
):
  try:
    org = Organization.get_by_id(org_id, db)
    if not org:
      raise HTTPException(status_code=404, detail="Organization not found")

    result = SubscriptionActivator(db).activate_self_service(
      org, body.plan_type if body else "starter"
    )

    return {
      "success": True,
      "message": "Trial activated successfully",
      "subscription": {
        "id": result["subscription_id"],
        "trialEnd": result["trial_ends_at"].isoformat(),
        "plan": result["plan"],
      },
    }

  except HTTPException:
    raise
  except (ActivationError, InvalidPlanError) as e:
    raise HTTPException(status_code=400, detail=e.message)
  except BillingProviderError as e:
    log_app_error(e, component="organizations", action="activate_trial", org_id=org_id)
    raise HTTPException(status_code=500, detail=e.message)
  except Exception as e:
    log_app_error(e, component="organizations", action="activate_trial", org_id=org_id)
    raise HTTPException(status_code=500, detail="Failed to activate trial")
