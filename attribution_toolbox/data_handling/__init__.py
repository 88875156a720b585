from .construct_schema import ConstructDefinition, ConstructSchema
from .survey_loader import SurveyLoader
