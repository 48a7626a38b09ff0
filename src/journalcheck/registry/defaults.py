"""Built-in registry used when no registry file is configured."""

from __future__ import annotations

DEFAULT_REGISTRY_YAML = """\
version: 1
enabled: true

contentIsolation:
  ignoreImages: true
  ignoreLinks: false
  ignoreFormatting: true
  ignoreHeadings: false
  ignoreCodeBlocks: true
  ignoreFrontmatter: true
  ignoreComments: true
  customIgnorePatterns: []

structures:
  default-dream-structure:
    name: Default Dream Structure
    description: Standard dream journal structure with required callouts
    nestingMode: flat
    rootType: dream
    childTypes: [symbols, reflections, interpretation]
    metricsType: metrics
    requiredTypes: [dream]
    optionalTypes: [symbols, reflections, interpretation, metrics]

  nested-dream-structure:
    name: Nested Dream Structure
    description: Nested dream journal structure with all callouts inside the root callout
    nestingMode: nested
    rootType: dream
    childTypes: [symbols, reflections, interpretation, metrics]
    metricsType: metrics
    requiredTypes: [dream, reflections]
    optionalTypes: [symbols, interpretation, metrics]

rules:
  dream-callout-required:
    name: Dream Callout Required
    description: Requires the dream callout in journal entries
    type: structural
    severity: error
    pattern: '> \\[!dream\\]'
    message: Dream journal entries must include a dream callout
    priority: 10

templates:
  default-template:
    name: Standard Dream Journal
    description: Default template for dream journal entries
    structure: default-dream-structure
    content: |
      # Dream Journal Entry

      > [!dream]
      > Enter your dream here.

      > [!symbols]
      > - Symbol 1: Meaning
      > - Symbol 2: Meaning

      > [!reflections]
      > Add your reflections here.

      > [!metrics]
      > Clarity: 7
      > Vividness: 8
      > Coherence: 6
"""
