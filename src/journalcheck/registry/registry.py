"""In-memory store of structures, rules and templates."""

from __future__ import annotations

from collections.abc import Iterable

from journalcheck.models.schema import (
    ContentIsolation,
    JournalTemplate,
    Rule,
    RuleKind,
    Structure,
)

# Rule kinds evaluated against the raw text; structural checks come from
# the structure itself.
PATTERN_RULE_KINDS = frozenset({RuleKind.FORMAT, RuleKind.CONTENT, RuleKind.CUSTOM})


class SchemaRegistry:
    """Ordered registry with lookup by id and iteration in registration order.

    Re-registering an id replaces the entry but keeps its original
    position.  The registry is only read while a text is validated.
    """

    def __init__(
        self,
        structures: Iterable[Structure] = (),
        rules: Iterable[Rule] = (),
        templates: Iterable[JournalTemplate] = (),
        *,
        enabled: bool = True,
        content_isolation: ContentIsolation | None = None,
    ) -> None:
        self.enabled = enabled
        self.content_isolation = content_isolation or ContentIsolation()
        self._structures: dict[str, Structure] = {}
        self._rules: dict[str, Rule] = {}
        self._templates: dict[str, JournalTemplate] = {}
        for structure in structures:
            self.add_structure(structure)
        for rule in rules:
            self.add_rule(rule)
        for template in templates:
            self.add_template(template)

    # -- structures ----------------------------------------------------------

    @property
    def structures(self) -> list[Structure]:
        return list(self._structures.values())

    def add_structure(self, structure: Structure) -> None:
        self._structures[structure.id] = structure

    def get_structure(self, structure_id: str) -> Structure | None:
        return self._structures.get(structure_id)

    # -- rules ---------------------------------------------------------------

    @property
    def rules(self) -> list[Rule]:
        return list(self._rules.values())

    def add_rule(self, rule: Rule) -> None:
        """Register *rule* after compiling its patterns.

        Raises :class:`~journalcheck.models.schema.RulePatternError` if a
        pattern does not compile; the registry is left unchanged.
        """
        rule.compile()
        self._rules[rule.id] = rule

    def get_rule(self, rule_id: str) -> Rule | None:
        return self._rules.get(rule_id)

    def remove_rule(self, rule_id: str) -> bool:
        return self._rules.pop(rule_id, None) is not None

    def pattern_rules(self) -> list[Rule]:
        """Enabled rules of a kind that is evaluated against the text."""
        return [r for r in self._rules.values() if r.enabled and r.kind in PATTERN_RULE_KINDS]

    # -- templates -----------------------------------------------------------

    @property
    def templates(self) -> list[JournalTemplate]:
        return list(self._templates.values())

    def add_template(self, template: JournalTemplate) -> None:
        self._templates[template.id] = template

    def get_template(self, template_id: str) -> JournalTemplate | None:
        return self._templates.get(template_id)

    def templates_for(self, structure_id: str) -> list[JournalTemplate]:
        return [t for t in self._templates.values() if t.structure == structure_id]
