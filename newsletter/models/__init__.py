from newsletter.models.subscription import Subscription, SubscriptionStatus, SubscriptionToken
