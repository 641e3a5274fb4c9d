"""Prompt templates for all LLM tasks."""

SYSTEM_ANALYST = """You are a venture analyst screening early startup ideas.
Answer in exactly the format requested. Do not add explanations."""

SCORE_VIABILITY = """\
Rate the business viability of this startup idea on a scale of 0 to 1.

Title: {title}
Description: {description}
Platform: {platform}

Consider market size, revenue potential and how clearly the problem is stated.
Respond with only a single number between 0 and 1."""

SCORE_PROFESSIONAL = """\
Evaluate this professional startup opportunity.

Title: {title}
Description: {description}
Platform: {platform}

Analyze and score (0-1):
1. Business Viability: market size, revenue potential, sustainable business model
2. Market Timing: current market readiness, trend alignment, competitive landscape
3. Technical Feasibility: implementation complexity, technical risks, resource requirements
4. Competitive Advantage: differentiation potential, barriers to entry, unique value

Respond with only 4 comma-separated scores (0-1):"""

SIMILARITY_PAIR = """\
How similar are these two startup ideas in the problem they solve and the \
market they target?

Idea A: {seed}
Idea B: {candidate}

Respond with only a single number between 0 and 1."""

SIMILARITY_BATCH = """\
Compare the reference business opportunity with each candidate below and \
rate how closely each one addresses the same problem for the same market.

REFERENCE:
{seed}

CANDIDATES:
{candidates}

Respond with only {count} comma-separated similarity scores (0-1), one per \
candidate, in the same order."""

TOPIC_LABEL = """\
Name the common business theme of these related startup ideas in 2 to 4 words.

IDEAS:
{ideas}

Respond with ONLY the label, nothing else."""

TREND_SUMMARY = """\
Summarize this cross-platform startup trend for an investor in 2 sentences.

TOPIC: {topic}
PLATFORMS: {platforms}
MENTIONS: {count}

SAMPLE MENTIONS:
{samples}

Focus on the business opportunity and who would pay for it."""
