from .user import User, HomeownerProfile, ShopOwnerProfile, Role
from .requirement import Requirement, RequirementStatus
from .quotation import Quotation
from .purchase import Purchase
from .review import Review
from .notification import Notification
from .update import Update
