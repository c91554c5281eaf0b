from .case import Case
from .index.store import IndexStore, CaseIndexNotFound, SourceItem, ItemKind, HitArtifact, ArtifactAttribute
from .index.settings import CaseSettings
from .report.saved_items import SavedItemsReport, SavedFile, SavedDirectory
from .commands.save import SaveStatus, SaveResult, SaveError
from .utils.processor import Processor
