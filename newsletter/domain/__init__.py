from newsletter.domain.errors import InvalidSubscriberData
from newsletter.domain.new_subscriber import NewSubscriber
from newsletter.domain.subscriber_email import SubscriberEmail
from newsletter.domain.subscriber_name import SubscriberName
