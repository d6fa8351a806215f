from prometheus_client import Counter
# Prometheus metrics definitions

# Login attempts by outcome:
# success | unknown_email | bad_password | banned | throttled
login_attempts_total = Counter(
    "login_attempts_total", "Authentication attempts", ["outcome"]
)

# Purchases recorded and the entitlement days they granted
purchases_total = Counter(
    "purchases_total", "Purchases recorded", ["payment_method"]
)
entitlement_days_granted_total = Counter(
    "entitlement_days_granted_total", "Subscription days credited by purchases"
)

# Accounts created through the API or seeding
accounts_created_total = Counter(
    "accounts_created_total", "Accounts created", ["role"]
)
