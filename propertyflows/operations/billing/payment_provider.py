"""Payment provider abstraction layer.

Business logic talks to ``PaymentProvider``; ``StripePaymentProvider`` is the
only implementation. Provider responses are flattened into plain dicts so
callers never depend on SDK object types.
"""

import json
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import stripe
from redis.exceptions import RedisError

from ...config import env
from ...config.billing import BillingConfig
from ...config.constants import PRICE_LOCK_TTL_SECONDS
from ...config.valkey_registry import ValkeyDatabase, create_redis_client
from ...exceptions import BillingProviderError
from ...logger import get_logger

logger = get_logger(__name__)


class PaymentProvider(ABC):
  """Abstract payment provider interface."""

  @abstractmethod
  def create_customer(
    self, organization_id: str, email: str, name: Optional[str] = None
  ) -> str:
    """Create customer in payment system.

    Returns:
        provider_customer_id: Customer ID in payment provider system
    """
    pass

  @abstractmethod
  def get_or_create_price(self, plan_name: str) -> str:
    """Resolve the recurring price id for a catalog plan, creating it if absent."""
    pass

  @abstractmethod
  def create_trial_subscription(
    self,
    customer_id: str,
    price_id: str,
    trial_days: int,
    metadata: Optional[Dict[str, Any]] = None,
  ) -> Dict[str, Any]:
    """Create a subscription that starts with a trial.

    Returns:
        Dict with keys: id, status, trial_end (unix seconds or None)
    """
    pass

  @abstractmethod
  def get_subscription(
    self, subscription_id: str, expand: Optional[List[str]] = None
  ) -> Dict[str, Any]:
    """Fetch a subscription."""
    pass

  @abstractmethod
  def update_subscription_price(
    self, subscription_id: str, price_id: str
  ) -> Dict[str, Any]:
    """Swap the subscription's price with prorations."""
    pass

  @abstractmethod
  def retry_invoice_payment(self, invoice_id: str) -> Dict[str, Any]:
    """Attempt to pay an open invoice now."""
    pass

  @abstractmethod
  def list_invoices(self, customer_id: str, limit: int = 10) -> List[Dict[str, Any]]:
    """List invoices for a customer, newest first."""
    pass

  @abstractmethod
  def create_billing_portal_session(self, customer_id: str, return_url: str) -> str:
    """Create a self-service billing portal session and return its URL."""
    pass

  @abstractmethod
  def verify_webhook(self, payload: bytes, signature: str) -> Dict[str, Any]:
    """Verify and parse webhook event.

    Raises:
        ValueError: Invalid payload or signature
    """
    pass


def _plain(obj: Any) -> Dict[str, Any]:
  """Recursive plain-dict copy of an SDK response."""
  if hasattr(obj, "to_dict"):
    return obj.to_dict()
  return dict(obj)


def _subscription_to_dict(subscription: Any) -> Dict[str, Any]:
  subscription = _plain(subscription)
  items = subscription["items"]["data"] if subscription.get("items") else []
  latest_invoice = subscription.get("latest_invoice")
  if latest_invoice is not None and not isinstance(latest_invoice, str):
    latest_invoice = {
      "id": latest_invoice["id"],
      "status": latest_invoice.get("status"),
      "amount_due": latest_invoice.get("amount_due"),
    }

  return {
    "id": subscription["id"],
    "status": subscription.get("status"),
    "customer": subscription.get("customer"),
    "current_period_start": subscription.get("current_period_start"),
    "current_period_end": subscription.get("current_period_end"),
    "cancel_at_period_end": bool(subscription.get("cancel_at_period_end")),
    "trial_end": subscription.get("trial_end"),
    "items": [
      {"id": item["id"], "price_id": item["price"]["id"]} for item in items
    ],
    "latest_invoice": latest_invoice,
  }


def _invoice_to_dict(invoice: Any) -> Dict[str, Any]:
  invoice = _plain(invoice)
  transitions = invoice.get("status_transitions") or {}
  return {
    "id": invoice["id"],
    "number": invoice.get("number"),
    "status": invoice.get("status"),
    "amount_due": invoice.get("amount_due") or 0,
    "amount_paid": invoice.get("amount_paid") or 0,
    "currency": invoice.get("currency"),
    "created": invoice.get("created"),
    "due_date": invoice.get("due_date"),
    "paid_at": transitions.get("paid_at"),
    "invoice_pdf": invoice.get("invoice_pdf"),
    "hosted_invoice_url": invoice.get("hosted_invoice_url"),
  }


class StripePaymentProvider(PaymentProvider):
  """Stripe implementation of payment provider."""

  def __init__(self):
    """Initialize Stripe with API key from environment."""
    stripe.api_key = env.STRIPE_SECRET_KEY
    stripe.api_version = env.STRIPE_API_VERSION
    self.stripe = stripe
    self._redis_client = None
    logger.info("Initialized Stripe payment provider")

  @property
  def redis_client(self):
    """Lazy-load Redis client for billing cache."""
    if self._redis_client is None:
      self._redis_client = create_redis_client(
        ValkeyDatabase.BILLING_CACHE, decode_responses=True
      )
    return self._redis_client

  def _provider_error(
    self, operation: str, error: stripe.StripeError
  ) -> BillingProviderError:
    message = getattr(error, "user_message", None) or str(error)
    logger.error(
      f"Stripe {operation} failed: {message}",
      extra={"action": operation},
    )
    return BillingProviderError(message, operation=operation)

  def create_customer(
    self, organization_id: str, email: str, name: Optional[str] = None
  ) -> str:
    """Create Stripe customer."""
    try:
      customer = self.stripe.Customer.create(
        email=email,
        name=name,
        metadata={"organization_id": organization_id},
      )
    except stripe.StripeError as e:
      raise self._provider_error("create_customer", e) from e

    logger.info(
      f"Created Stripe customer {customer['id']} for organization {organization_id}",
      extra={"org_id": organization_id, "stripe_customer_id": customer["id"]},
    )
    return customer["id"]

  def get_or_create_price(self, plan_name: str) -> str:
    """Get or create Stripe price for a plan, with caching and auto-creation.

    1. Check Redis cache for existing price ID
    2. If not cached, search Stripe for the plan's product
    3. If not in Stripe, create product and price from billing config
    4. Cache the result with 24-hour TTL
    5. Use a Redis lock to keep concurrent activations from creating duplicates

    Redis failures fall back to an uncached Stripe lookup.

    Raises:
        ValueError: Plan not found in billing config
    """
    plan_config = BillingConfig.get_subscription_plan(plan_name)
    if not plan_config:
      raise ValueError(f"Plan '{plan_name}' not found in billing config")
    plan_name = plan_config["name"]

    cache_key = f"stripe_price:{env.ENVIRONMENT}:{plan_name}"
    lock_key = f"stripe_price_lock:{env.ENVIRONMENT}:{plan_name}"

    try:
      cached_price_id = self.redis_client.get(cache_key)
    except RedisError as e:
      logger.warning(
        f"Price cache unavailable for {plan_name}, using uncached lookup: {e}"
      )
      return self._find_or_create_price(plan_name, plan_config)

    if cached_price_id:
      logger.debug(f"Using cached Stripe price ID for {plan_name}: {cached_price_id}")
      return cached_price_id

    lock_acquired = False
    try:
      try:
        lock_acquired = self.redis_client.set(
          lock_key, "1", nx=True, ex=PRICE_LOCK_TTL_SECONDS
        )

        if not lock_acquired:
          for _ in range(10):
            time.sleep(0.5)
            cached_price_id = self.redis_client.get(cache_key)
            if cached_price_id:
              logger.debug(f"Found price ID after waiting: {cached_price_id}")
              return cached_price_id

          logger.warning(f"Failed to acquire lock for {plan_name}, proceeding anyway")
      except RedisError as e:
        logger.warning(f"Price lock unavailable for {plan_name}, proceeding anyway: {e}")

      price_id = self._find_or_create_price(plan_name, plan_config)
      try:
        self.redis_client.setex(cache_key, env.PRICE_CACHE_TTL, price_id)
      except RedisError as e:
        logger.warning(f"Failed to cache Stripe price for {plan_name}: {e}")
      return price_id

    finally:
      if lock_acquired:
        try:
          self.redis_client.delete(lock_key)
        except RedisError as e:
          logger.warning(f"Failed to release price lock for {plan_name}: {e}")

  def _find_or_create_price(self, plan_name: str, plan_config: Dict[str, Any]) -> str:
    metadata = {"plan_name": plan_name, "environment": env.ENVIRONMENT}

    try:
      search_query = (
        f'metadata["plan_name"]:"{plan_name}" '
        f'AND metadata["environment"]:"{env.ENVIRONMENT}"'
      )
      products = _plain(self.stripe.Product.search(query=search_query, limit=1))

      if products["data"]:
        product = products["data"][0]
        logger.info(f"Found existing Stripe product for {plan_name}: {product['id']}")

        prices = _plain(
          self.stripe.Price.list(product=product["id"], active=True, limit=10)
        )
        for price in prices["data"]:
          recurring = price.get("recurring") or {}
          if (
            price.get("unit_amount") == plan_config["price_cents"]
            and recurring.get("interval") == "month"
          ):
            logger.info(f"Found existing Stripe price for {plan_name}: {price['id']}")
            return price["id"]

        logger.warning(
          f"No matching active price for product {product['id']}, creating new price"
        )
      else:
        product_name = plan_config["display_name"]
        if not env.is_production():
          product_name = f"{product_name} ({env.ENVIRONMENT})"

        logger.info(f"Creating new Stripe product for {plan_name}")
        product = self.stripe.Product.create(
          name=product_name,
          description=plan_config.get("description", ""),
          metadata=metadata,
        )

      price = self.stripe.Price.create(
        product=product["id"],
        unit_amount=plan_config["price_cents"],
        currency="usd",
        recurring={"interval": "month"},
        metadata=metadata,
      )
    except stripe.StripeError as e:
      raise self._provider_error("get_or_create_price", e) from e

    logger.info(
      f"Created Stripe price for {plan_name}",
      extra={"action": "price_created", "metadata": {"price_id": price["id"]}},
    )
    return price["id"]

  def create_trial_subscription(
    self,
    customer_id: str,
    price_id: str,
    trial_days: int,
    metadata: Optional[Dict[str, Any]] = None,
  ) -> Dict[str, Any]:
    """Create Stripe subscription with a trial and no upfront payment method."""
    try:
      subscription = _plain(
        self.stripe.Subscription.create(
          customer=customer_id,
          items=[{"price": price_id}],
          trial_period_days=trial_days,
          payment_behavior="default_incomplete",
          payment_settings={"save_default_payment_method": "on_subscription"},
          metadata=metadata or {},
        )
      )
    except stripe.StripeError as e:
      raise self._provider_error("create_trial_subscription", e) from e

    logger.info(
      f"Created Stripe trial subscription {subscription['id']} ({trial_days} days)",
      extra={
        "stripe_customer_id": customer_id,
        "stripe_subscription_id": subscription["id"],
      },
    )

    return {
      "id": subscription["id"],
      "status": subscription.get("status"),
      "trial_end": subscription.get("trial_end"),
    }

  def get_subscription(
    self, subscription_id: str, expand: Optional[List[str]] = None
  ) -> Dict[str, Any]:
    """Retrieve a Stripe subscription."""
    try:
      if expand:
        subscription = self.stripe.Subscription.retrieve(subscription_id, expand=expand)
      else:
        subscription = self.stripe.Subscription.retrieve(subscription_id)
    except stripe.StripeError as e:
      raise self._provider_error("get_subscription", e) from e

    return _subscription_to_dict(subscription)

  def update_subscription_price(
    self, subscription_id: str, price_id: str
  ) -> Dict[str, Any]:
    """Replace the subscription's first item price, prorating the change."""
    try:
      current = _subscription_to_dict(
        self.stripe.Subscription.retrieve(subscription_id)
      )
      item_id = current["items"][0]["id"]
      subscription = self.stripe.Subscription.modify(
        subscription_id,
        items=[{"id": item_id, "price": price_id}],
        proration_behavior="create_prorations",
      )
    except stripe.StripeError as e:
      raise self._provider_error("update_subscription_price", e) from e

    logger.info(
      f"Changed price of subscription {subscription_id} to {price_id}",
      extra={"stripe_subscription_id": subscription_id},
    )
    return _subscription_to_dict(subscription)

  def retry_invoice_payment(self, invoice_id: str) -> Dict[str, Any]:
    """Pay an open Stripe invoice immediately."""
    try:
      invoice = _invoice_to_dict(self.stripe.Invoice.pay(invoice_id))
    except stripe.StripeError as e:
      raise self._provider_error("retry_invoice_payment", e) from e

    logger.info(
      f"Retried payment for invoice {invoice_id}: {invoice.get('status')}",
      extra={"invoice_id": invoice_id},
    )
    return invoice

  def list_invoices(self, customer_id: str, limit: int = 10) -> List[Dict[str, Any]]:
    """List invoices for a Stripe customer."""
    try:
      invoices = self.stripe.Invoice.list(customer=customer_id, limit=limit)
    except stripe.StripeError as e:
      raise self._provider_error("list_invoices", e) from e

    result = [_invoice_to_dict(inv) for inv in invoices["data"]]
    logger.debug(f"Listed {len(result)} invoices for customer {customer_id}")
    return result

  def create_billing_portal_session(self, customer_id: str, return_url: str) -> str:
    """Create a Stripe billing portal session."""
    try:
      session = self.stripe.billing_portal.Session.create(
        customer=customer_id, return_url=return_url
      )
    except stripe.StripeError as e:
      raise self._provider_error("create_billing_portal_session", e) from e

    return session["url"]

  def verify_webhook(self, payload: bytes, signature: str) -> Dict[str, Any]:
    """Verify Stripe webhook signature and parse event."""
    try:
      event = self.stripe.Webhook.construct_event(
        payload, signature, env.STRIPE_WEBHOOK_SECRET
      )
    except ValueError as e:
      logger.error(f"Invalid webhook payload: {e}")
      raise
    except stripe.SignatureVerificationError as e:
      logger.error(f"Invalid webhook signature: {e}")
      raise ValueError("Invalid webhook signature") from e

    logger.debug(
      f"Verified Stripe webhook: {event['type']}",
      extra={"event_type": event["type"], "event_id": event["id"]},
    )
    # Plain dict of the verified body
    return json.loads(payload)


_provider: Optional[PaymentProvider] = None


def get_payment_provider(provider_name: str = "stripe") -> PaymentProvider:
  """Factory function returning the process-wide payment provider.

  Raises:
      ValueError: Unknown provider name
  """
  global _provider

  if provider_name != "stripe":
    raise ValueError(f"Unknown payment provider: {provider_name}")

  if _provider is None:
    _provider = StripePaymentProvider()
  return _provider
