from stylelens.rules.persistence import (
    ExportFormat,
    FileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    SavedSession,
    StorageQuotaError,
    StylePersistence,
)
from stylelens.rules.repository import StyleRuleRepository
from stylelens.rules.rule_list import (
    InMemoryRuleList,
    RuleList,
    RuleRejectedError,
    build_rule_text,
)

__all__ = [
    "ExportFormat",
    "FileKeyValueStore",
    "InMemoryRuleList",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "RuleList",
    "RuleRejectedError",
    "SavedSession",
    "StorageQuotaError",
    "StylePersistence",
    "StyleRuleRepository",
    "build_rule_text",
]
