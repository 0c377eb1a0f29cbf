from .journal import JournalEntry
from .checkin import CheckInData
from .stack import StackItem, UserProfile
from .context import AnalysisContext
from .recommendation import Recommendation
