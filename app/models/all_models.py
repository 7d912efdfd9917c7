"""Import every model so that ``Base.metadata`` knows all tables."""

from app.models.activation_code_model import ActivationCodeModel
from app.models.content_model import ContentModel
from app.models.exam_model import ExamModel
from app.models.question_model import QuestionModel
from app.models.skillup_model import SkillUpModel
from app.models.sub_category_model import SubCategoryModel
from app.models.subject_availability_model import SubjectAvailabilityModel
from app.models.subject_model import SubjectModel
from app.models.subscription_model import SubscriptionModel
from app.models.topic_assignment_model import TopicAssignmentModel
from app.models.topic_model import TopicModel
from app.models.track_model import TrackModel
from app.models.tutorial_model import TutorialCategoryModel, TutorialModel
from app.models.user_model import UserModel

__all__ = [
    "ActivationCodeModel",
    "ContentModel",
    "ExamModel",
    "QuestionModel",
    "SkillUpModel",
    "SubCategoryModel",
    "SubjectAvailabilityModel",
    "SubjectModel",
    "SubscriptionModel",
    "TopicAssignmentModel",
    "TopicModel",
    "TrackModel",
    "TutorialCategoryModel",
    "TutorialModel",
    "UserModel",
]
