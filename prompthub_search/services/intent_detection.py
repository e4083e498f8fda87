"""
Intent Detection Module
Maps free-text prompt queries to a structured intent profile

All rule tables are ordered data evaluated top to bottom; the first
matching rule wins for action and domain. Classification never fails:
unmatched input falls through to the general defaults.
"""
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Pattern, Tuple
import logging
import re

from ..models.search import (
    ActionType,
    Complexity,
    Domain,
    IntentProfile,
    Style,
    Urgency,
)

logger = logging.getLogger(__name__)

MAX_QUERY_TOKENS = 10


@dataclass(frozen=True)
class KeywordRule:
    """Ordered (keywords -> result) rule; matches if any keyword occurs"""
    result: object
    keywords: Tuple[str, ...]


# =============================================================================
# RULE TABLES
# =============================================================================

ACTION_RULES: List[KeywordRule] = [
    KeywordRule(ActionType.CREATE, (
        "写", "编写", "撰写", "创建", "生成", "制作", "起草",
        "write", "create", "generate", "draft", "make", "compose",
    )),
    KeywordRule(ActionType.ANALYZE, (
        "分析", "检查", "评估", "审查",
        "analyze", "analyse", "check", "evaluate", "review", "audit",
    )),
    KeywordRule(ActionType.TRANSFORM, (
        "翻译", "转换", "改写", "转述",
        "translate", "convert", "transform", "rewrite", "rephrase",
    )),
    KeywordRule(ActionType.SUMMARIZE, (
        "总结", "概括", "提炼", "摘要",
        "summarize", "summarise", "summary", "condense", "tldr",
    )),
    KeywordRule(ActionType.OPTIMIZE, (
        "优化", "改进", "提升", "完善", "润色",
        "optimize", "optimise", "improve", "enhance", "refine", "polish",
    )),
    KeywordRule(ActionType.EXPLAIN, (
        "解释", "说明", "阐述", "讲解",
        "explain", "describe", "clarify",
    )),
    KeywordRule(ActionType.PLAN, (
        "计划", "规划", "安排", "策划",
        "plan", "schedule", "organize", "organise",
    )),
]

DOMAIN_RULES: List[KeywordRule] = [
    KeywordRule(Domain.BUSINESS, (
        "商务", "商业", "业务", "邮件", "会议", "销售", "营销", "客户",
        "business", "email", "meeting", "sales", "marketing", "customer",
    )),
    KeywordRule(Domain.TECH, (
        "技术", "代码", "程序", "编程", "开发", "算法",
        "code", "coding", "programming", "developer", "software", "api", "bug", "sql", "python",
    )),
    KeywordRule(Domain.ACADEMIC, (
        "学术", "论文", "研究", "科学",
        "academic", "paper", "research", "thesis", "scientific",
    )),
    KeywordRule(Domain.CREATIVE, (
        "创意", "设计", "艺术", "文案", "故事",
        "creative", "design", "art", "story", "copywriting",
    )),
    KeywordRule(Domain.LEGAL, (
        "法律", "合同", "条款", "协议", "法规",
        "legal", "contract", "agreement", "clause", "regulation",
    )),
    KeywordRule(Domain.EDUCATION, (
        "教育", "教学", "学习", "课程",
        "education", "teaching", "lesson", "course", "student",
    )),
    KeywordRule(Domain.HEALTH, (
        "健康", "医疗", "健身",
        "health", "medical", "fitness", "wellness",
    )),
]

STYLE_RULES: List[KeywordRule] = [
    KeywordRule(Style.FORMAL, ("正式", "官方", "商务", "专业", "formal", "official", "professional")),
    KeywordRule(Style.CASUAL, ("随意", "轻松", "友好", "casual", "relaxed", "friendly")),
    KeywordRule(Style.TECHNICAL, ("技术", "详细", "technical", "detailed", "specific")),
    KeywordRule(Style.CREATIVE, ("创意", "有趣", "生动", "creative", "fun", "vivid")),
    KeywordRule(Style.CONCISE, ("简洁", "简短", "快速", "concise", "brief", "short")),
]

URGENCY_RULES: List[KeywordRule] = [
    KeywordRule(Urgency.HIGH, ("紧急", "急", "立即", "马上", "urgent", "asap", "immediately")),
    KeywordRule(Urgency.MEDIUM, ("今天", "尽快", "很快", "soon", "today", "quickly")),
]

COMPLEXITY_MARKERS: Tuple[str, ...] = (
    "复杂", "详细", "深入", "全面", "complex", "detailed", "in-depth", "comprehensive",
)

# Key substring -> synonyms added to the semantic keyword set
SYNONYMS: List[Tuple[str, Tuple[str, ...]]] = [
    ("邮件", ("email", "mail", "信件")),
    ("email", ("邮件", "mail", "letter")),
    ("商务", ("business", "商业")),
    ("business", ("商务", "commercial")),
    ("代码", ("code", "编程", "programming")),
    ("code", ("代码", "programming")),
    ("写", ("write", "撰写", "编写")),
    ("write", ("写", "compose", "draft")),
    ("翻译", ("translate", "translation")),
    ("translate", ("翻译", "translation")),
    ("总结", ("summary", "摘要", "概括")),
    ("summary", ("总结", "summarize")),
    ("分析", ("analysis", "analyze")),
    ("优化", ("optimize", "改进")),
    ("文案", ("copywriting", "copy")),
    ("论文", ("paper", "thesis")),
    ("合同", ("contract", "协议")),
    ("会议", ("meeting", "纪要")),
    ("营销", ("marketing", "推广")),
]

ACTION_TAGS: Dict[ActionType, Tuple[str, ...]] = {
    ActionType.CREATE: ("writing", "generation"),
    ActionType.ANALYZE: ("analysis", "review"),
    ActionType.TRANSFORM: ("translation", "rewriting"),
    ActionType.SUMMARIZE: ("summary",),
    ActionType.OPTIMIZE: ("optimization",),
    ActionType.EXPLAIN: ("explanation",),
    ActionType.PLAN: ("planning",),
    ActionType.GENERAL_QUERY: (),
}

DOMAIN_TAGS: Dict[Domain, Tuple[str, ...]] = {
    Domain.BUSINESS: ("business", "workplace"),
    Domain.TECH: ("programming", "development"),
    Domain.ACADEMIC: ("academic", "research"),
    Domain.CREATIVE: ("creative", "copywriting"),
    Domain.LEGAL: ("legal", "contract"),
    Domain.EDUCATION: ("education", "learning"),
    Domain.HEALTH: ("health",),
    Domain.GENERAL: (),
}

# Marker keywords -> ad hoc tag
MARKER_TAGS: List[KeywordRule] = [
    KeywordRule("template", ("模板", "格式", "template", "format")),
    KeywordRule("professional", ("专业", "正式", "professional", "formal")),
    KeywordRule("email", ("邮件", "email")),
    KeywordRule("concise", ("简洁", "简短", "concise", "brief")),
    KeywordRule("detailed", ("详细", "detailed")),
]

DOMAIN_CATEGORIES: Dict[Domain, Tuple[str, ...]] = {
    Domain.BUSINESS: ("business", "商业", "办公"),
    Domain.TECH: ("tech", "编程"),
    Domain.ACADEMIC: ("academic", "学术"),
    Domain.CREATIVE: ("creative", "文案", "设计"),
    Domain.LEGAL: ("legal",),
    Domain.EDUCATION: ("education", "教育"),
    Domain.HEALTH: ("health", "健康"),
    Domain.GENERAL: (),
}

# Marker keywords -> ad hoc suggested category
CATEGORY_TRIGGERS: List[KeywordRule] = [
    KeywordRule("business", ("邮件", "email", "会议", "meeting")),
    KeywordRule("翻译", ("翻译", "translate", "translation")),
    KeywordRule("编程", ("代码", "code", "programming")),
    KeywordRule("文案", ("文案", "copywriting")),
]

STOP_WORDS = frozenset({
    "的", "了", "在", "是", "和", "就", "一个", "这个", "那个", "请", "帮我",
    "the", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "is", "are", "was", "be", "this", "that", "it", "me", "my", "please",
})


# =============================================================================
# MATCHING HELPERS
# =============================================================================

@lru_cache(maxsize=1024)
def _term_pattern(term: str) -> Pattern[str]:
    # ASCII terms match whole words plus common inflections, CJK terms as plain substrings
    if term.isascii():
        if term.endswith("e") and len(term) > 2:
            # code -> coding, translate -> translated
            body = re.escape(term[:-1]) + r"(?:e(?:s|d|r|rs)?|ing)"
        else:
            body = re.escape(term) + r"(?:s|es|ed|ing|er|ers)?"
        return re.compile(r"(?<![a-z0-9])" + body + r"(?![a-z0-9])")
    return re.compile(re.escape(term))


def contains_term(text: str, term: str) -> bool:
    """Check whether a lowercased text contains term"""
    if not term:
        return False
    return _term_pattern(term.lower()).search(text) is not None


def count_terms(text: str, terms: Iterable[str]) -> int:
    """Count how many distinct terms occur in text"""
    return sum(1 for term in set(terms) if contains_term(text, term))


def first_match(text: str, rules: List[KeywordRule], default):
    """Return the result of the first rule with a keyword in text"""
    for rule in rules:
        if any(contains_term(text, kw) for kw in rule.keywords):
            return rule.result
    return default


def all_matches(text: str, rules: List[KeywordRule]) -> List:
    """Return results of every rule with a keyword in text, in table order"""
    return [
        rule.result for rule in rules
        if any(contains_term(text, kw) for kw in rule.keywords)
    ]


def _unique(items: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(item for item in items if item))


def tokenize(text: str) -> List[str]:
    """
    Basic query tokenization

    Strips punctuation (keeping CJK, letters and digits), splits on
    whitespace, drops single-character tokens and stop words, dedupes and
    caps at MAX_QUERY_TOKENS.
    """
    cleaned = re.sub(r"[^\w\s一-鿿]", " ", text.lower())
    tokens = [
        token for token in cleaned.split()
        if len(token) > 1 and token not in STOP_WORDS
    ]
    return list(_unique(tokens))[:MAX_QUERY_TOKENS]


# =============================================================================
# CLASSIFICATION
# =============================================================================

def expand_keywords(text: str) -> Tuple[str, ...]:
    """
    Tokenize the query and add synonyms for every matching table key

    The key itself is kept too, since unsegmented CJK queries never
    produce it as a token.
    """
    lowered = text.lower()
    keywords = tokenize(text)
    for key, synonyms in SYNONYMS:
        if key in lowered:
            keywords.append(key)
            keywords.extend(synonyms)
    return _unique(keywords)


def detect_complexity(text: str) -> Complexity:
    lowered = text.lower()
    token_count = len(lowered.split())
    if any(contains_term(lowered, marker) for marker in COMPLEXITY_MARKERS):
        return Complexity.COMPLEX
    if token_count > 12 or len(lowered) > 50:
        return Complexity.COMPLEX
    if token_count <= 2 and len(lowered) < 10:
        return Complexity.SIMPLE
    return Complexity.MEDIUM


def classify(text: Optional[str], context: str = "") -> IntentProfile:
    """
    Classify a query into an intent profile

    Args:
        text: Raw query text
        context: Optional usage scenario; considered for domain and urgency

    Returns:
        IntentProfile; general defaults when nothing matches
    """
    text = (text or "").strip()
    if not text:
        return IntentProfile()

    lowered = text.lower()
    with_context = f"{lowered} {context.lower()}".strip() if context else lowered

    action = first_match(lowered, ACTION_RULES, ActionType.GENERAL_QUERY)
    domain = first_match(with_context, DOMAIN_RULES, Domain.GENERAL)

    semantic_tags = _unique([
        *ACTION_TAGS.get(action, ()),
        *DOMAIN_TAGS.get(domain, ()),
        *all_matches(lowered, MARKER_TAGS),
    ])
    suggested_categories = _unique([
        *DOMAIN_CATEGORIES.get(domain, ()),
        *all_matches(lowered, CATEGORY_TRIGGERS),
    ])

    profile = IntentProfile(
        action=action,
        domain=domain,
        style=first_match(lowered, STYLE_RULES, Style.NEUTRAL),
        urgency=first_match(with_context, URGENCY_RULES, Urgency.LOW),
        complexity=detect_complexity(text),
        semantic_keywords=expand_keywords(text),
        semantic_tags=semantic_tags,
        suggested_categories=suggested_categories,
    )

    logger.debug(
        f"Classified query: action={profile.action.value}, domain={profile.domain.value}, "
        f"keywords={len(profile.semantic_keywords)}, categories={list(profile.suggested_categories)}"
    )
    return profile


def action_keywords(action: ActionType) -> Tuple[str, ...]:
    """Vocabulary of an action rule (empty for generalQuery)"""
    for rule in ACTION_RULES:
        if rule.result == action:
            return rule.keywords
    return ()


def domain_keywords(domain: Domain) -> Tuple[str, ...]:
    """Vocabulary of a domain rule (empty for general)"""
    for rule in DOMAIN_RULES:
        if rule.result == domain:
            return rule.keywords
    return ()
