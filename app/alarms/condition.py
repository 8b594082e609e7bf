"""
알람 조건식 평가기

허용 문법 (필드 비교 + 논리 결합만 지원, 코드 실행 없음):

    status == PENDING
    material.status === 'PENDENTE' && company != "ACME"
    not (material_type == ENCODER or status == CANCELED)

    expr       := or
    or         := and (("or" | "||") and)*
    and        := unary (("and" | "&&") unary)*
    unary      := ("not" | "!") unary | "(" expr ")" | comparison
    comparison := field op literal
    op         := == | != | > | < | >= | <=    (===, !== 는 별칭)
    literal    := '문자열' | "문자열" | 숫자 | true | false | null | 단어

평가 오류(문법 오류, 없는 필드, 타입 불일치)는 경고 로그 후 False (fail-closed).
"""

import enum
import logging
import operator
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from functools import lru_cache
from typing import Any, Union

logger = logging.getLogger(__name__)


class ConditionError(Exception):
    """조건식 처리 오류"""


class ConditionSyntaxError(ConditionError):
    """조건식 문법 오류"""


class ConditionEvaluationError(ConditionError):
    """조건식 평가 오류 (필드 없음, 타입 불일치)"""


# 평가 가능한 자재 필드 (snake_case)
MATERIAL_FIELDS = frozenset({
    "id", "invoice_number", "order_number", "equipment_details", "order_type",
    "material_type", "shipment_code", "sap_code", "company", "carrier",
    "ship_date", "shipment_date", "status", "notes", "comments",
    "created_by", "created_at", "updated_by", "updated_at",
})

# 기존 규칙(camelCase 필드명) 호환
FIELD_ALIASES = {
    "notaFiscal": "invoice_number",
    "numeroOrdem": "order_number",
    "detalhesEquipamento": "equipment_details",
    "tipoOrdem": "order_type",
    "tipoMaterial": "material_type",
    "remessa": "shipment_code",
    "codigoSAP": "sap_code",
    "empresa": "company",
    "transportadora": "carrier",
    "dataEnvio": "ship_date",
    "dataRemessa": "shipment_date",
    "observacoes": "notes",
    "comentarios": "comments",
    "createdBy": "created_by",
    "createdAt": "created_at",
    "updatedBy": "updated_by",
    "updatedAt": "updated_at",
    "materialType": "material_type",
    "orderNumber": "order_number",
    "invoiceNumber": "invoice_number",
}

_OPERATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    "<": operator.lt,
    ">=": operator.ge,
    "<=": operator.le,
}
_OPERATOR_ALIASES = {"===": "==", "!==": "!="}

_KEYWORDS = {"and", "or", "not", "true", "false", "null"}

_TOKEN_RE = re.compile(
    r"""
    (?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
    | (?P<number>-?\d+(?:\.\d+)?(?![\w.]))
    | (?P<op>===|!==|==|!=|>=|<=|>|<|&&|\|\||!)
    | (?P<paren>[()])
    | (?P<word>[A-Za-z_][\w.]*)
    """,
    re.VERBOSE,
)


# ============================================================
# 표현식 트리
# ============================================================

@dataclass(frozen=True)
class Comparison:
    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class And:
    items: tuple


@dataclass(frozen=True)
class Or:
    items: tuple


@dataclass(frozen=True)
class Not:
    item: Any


Node = Union[Comparison, And, Or, Not]


# ============================================================
# 파서
# ============================================================

def _tokenize(expression: str) -> list[tuple[str, str]]:
    tokens = []
    pos = 0
    length = len(expression)
    while pos < length:
        if expression[pos].isspace():
            pos += 1
            continue
        match = _TOKEN_RE.match(expression, pos)
        if not match:
            raise ConditionSyntaxError(
                f"해석할 수 없는 문자: {expression[pos:pos + 10]!r} (위치 {pos})"
            )
        kind = match.lastgroup
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


def _unquote(raw: str) -> str:
    body = raw[1:-1]
    return re.sub(r"\\(.)", r"\1", body)


def _resolve_field(name: str) -> str:
    if name.startswith("material."):
        name = name[len("material."):]
    name = FIELD_ALIASES.get(name, name)
    if name not in MATERIAL_FIELDS:
        raise ConditionSyntaxError(f"알 수 없는 필드: {name}")
    return name


class _Parser:
    """재귀 하강 파서"""

    def __init__(self, tokens: list[tuple[str, str]]):
        self.tokens = tokens
        self.pos = 0

    def _peek(self):
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return (None, None)

    def _next(self):
        token = self._peek()
        if token[0] is None:
            raise ConditionSyntaxError("조건식이 예기치 않게 끝났습니다.")
        self.pos += 1
        return token

    def _accept(self, *values: str) -> bool:
        kind, value = self._peek()
        if kind in ("op", "word") and value is not None and value.lower() in values:
            self.pos += 1
            return True
        return False

    def parse(self) -> Node:
        node = self._or()
        if self.pos != len(self.tokens):
            raise ConditionSyntaxError(f"예상치 못한 토큰: {self._peek()[1]!r}")
        return node

    def _or(self) -> Node:
        items = [self._and()]
        while self._accept("or", "||"):
            items.append(self._and())
        return items[0] if len(items) == 1 else Or(tuple(items))

    def _and(self) -> Node:
        items = [self._unary()]
        while self._accept("and", "&&"):
            items.append(self._unary())
        return items[0] if len(items) == 1 else And(tuple(items))

    def _unary(self) -> Node:
        if self._accept("not", "!"):
            return Not(self._unary())
        kind, value = self._peek()
        if kind == "paren" and value == "(":
            self.pos += 1
            node = self._or()
            kind, value = self._next()
            if kind != "paren" or value != ")":
                raise ConditionSyntaxError("닫는 괄호 ')'가 없습니다.")
            return node
        return self._comparison()

    def _comparison(self) -> Comparison:
        kind, value = self._next()
        if kind != "word" or value.lower() in _KEYWORDS:
            raise ConditionSyntaxError(f"필드명이 필요합니다: {value!r}")
        field_name = _resolve_field(value)

        kind, op = self._next()
        op = _OPERATOR_ALIASES.get(op, op)
        if kind != "op" or op not in _OPERATORS:
            raise ConditionSyntaxError(f"비교 연산자가 필요합니다: {op!r}")

        return Comparison(field_name, op, self._literal())

    def _literal(self) -> Any:
        kind, value = self._next()
        if kind == "string":
            return _unquote(value)
        if kind == "number":
            return float(value) if "." in value else int(value)
        if kind == "word":
            lowered = value.lower()
            if lowered == "true":
                return True
            if lowered == "false":
                return False
            if lowered == "null":
                return None
            if lowered in _KEYWORDS:
                raise ConditionSyntaxError(f"값이 필요합니다: {value!r}")
            # 따옴표 없는 단어는 문자열 (예: status == PENDING)
            return value
        raise ConditionSyntaxError(f"값이 필요합니다: {value!r}")


@lru_cache(maxsize=256)
def parse_condition(expression: str) -> Node:
    """조건식 문자열 → 표현식 트리 (문법 오류 시 ConditionSyntaxError)"""
    tokens = _tokenize(expression)
    if not tokens:
        raise ConditionSyntaxError("빈 조건식")
    return _Parser(tokens).parse()


# ============================================================
# 평가
# ============================================================

def _read_field(material, name: str) -> Any:
    if isinstance(material, Mapping):
        if name in material:
            return material[name]
        for alias, canonical in FIELD_ALIASES.items():
            if canonical == name and alias in material:
                return material[alias]
        raise ConditionEvaluationError(f"자재에 필드가 없습니다: {name}")
    try:
        return getattr(material, name)
    except AttributeError:
        raise ConditionEvaluationError(f"자재에 필드가 없습니다: {name}") from None


def _coerce(actual: Any, expected: Any) -> tuple[Any, Any]:
    """필드 값 타입에 맞춰 리터럴 변환"""
    if expected is None or actual is None:
        return actual, expected

    if isinstance(actual, enum.Enum):
        try:
            return actual, type(actual)(expected)
        except ValueError:
            return actual.value, expected

    if isinstance(actual, datetime) and isinstance(expected, str):
        parsed = datetime.fromisoformat(expected)
        if parsed.tzinfo is None and actual.tzinfo is not None:
            parsed = parsed.replace(tzinfo=actual.tzinfo)
        elif parsed.tzinfo is not None and actual.tzinfo is None:
            actual = actual.replace(tzinfo=parsed.tzinfo)
        return actual, parsed

    if isinstance(actual, date) and not isinstance(actual, datetime) and isinstance(expected, str):
        return actual, date.fromisoformat(expected)

    if isinstance(actual, bool) or isinstance(expected, bool):
        return actual, expected

    if isinstance(actual, (int, float)) and isinstance(expected, str):
        try:
            return actual, float(expected)
        except ValueError:
            raise ConditionEvaluationError(
                f"숫자 필드와 비교할 수 없는 값: {expected!r}"
            ) from None

    if isinstance(actual, str) and isinstance(expected, (int, float)):
        return actual, str(expected)

    return actual, expected


def _eval_node(node: Node, material) -> bool:
    if isinstance(node, Comparison):
        actual, expected = _coerce(_read_field(material, node.field), node.value)
        if node.op not in ("==", "!=") and (actual is None or expected is None):
            raise ConditionEvaluationError(f"null 값은 크기 비교할 수 없습니다: {node.field}")
        return bool(_OPERATORS[node.op](actual, expected))
    if isinstance(node, And):
        return all(_eval_node(item, material) for item in node.items)
    if isinstance(node, Or):
        return any(_eval_node(item, material) for item in node.items)
    if isinstance(node, Not):
        return not _eval_node(node.item, material)
    raise ConditionEvaluationError(f"지원하지 않는 노드: {node!r}")


def is_blank(expression) -> bool:
    return expression is None or not str(expression).strip()


def evaluate(material, expression) -> bool:
    """
    자재가 조건식을 만족하는지 평가
    빈 조건식은 필터 없음(True), 오류는 경고 후 False
    """
    if is_blank(expression):
        return True
    try:
        tree = parse_condition(str(expression).strip())
        return _eval_node(tree, material)
    except Exception as e:
        material_id = material.get("id") if isinstance(material, Mapping) else getattr(material, "id", None)
        logger.warning(f"조건 평가 실패 (material={material_id}, condition={expression!r}): {e}")
        return False
