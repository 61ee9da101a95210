"""SQLAlchemy models for PromptTracker.

JSON payloads are stored in Text columns; each model exposes a decoded
property (e.g. ``PromptVersion.model_config``) over its ``*_json`` column.
Timestamps are ISO-8601 Text, as everywhere else in the schema.
"""

from sqlalchemy import Column, Integer, Float, Text, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

from ..prompt import PromptTemplateParser
from ..utils import utc_now_iso, load_json, dump_json

Base = declarative_base()

# Extra variables every conversational dataset carries
CONVERSATIONAL_FIELDS = [
    {
        "name": "interlocutor_simulation_prompt",
        "type": "text",
        "required": True,
        "description": "Prompt describing the simulated user for multi-turn runs",
    },
    {
        "name": "max_turns",
        "type": "integer",
        "required": False,
        "default": 5,
        "description": "Maximum number of conversation turns",
    },
]


def _json_property(column_name: str, default_factory):
    """Build a read/write property decoding a JSON Text column."""

    def getter(self):
        return load_json(getattr(self, column_name), default_factory())

    def setter(self, value):
        setattr(self, column_name, dump_json(value) if value is not None else None)

    return property(getter, setter)


class Prompt(Base):
    """Prompt definition. Holds an ordered list of versions."""
    __tablename__ = "prompts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    description = Column(Text)
    created_at = Column(Text, nullable=False, default=utc_now_iso)

    versions = relationship(
        "PromptVersion", back_populates="prompt", cascade="all, delete-orphan",
        order_by="PromptVersion.version_number"
    )


class PromptVersion(Base):
    """Versioned template and model configuration for an LLM call."""
    __tablename__ = "prompt_versions"

    STATUSES = ("draft", "active", "deprecated")

    id = Column(Integer, primary_key=True, autoincrement=True)
    prompt_id = Column(Integer, ForeignKey("prompts.id"), nullable=False)
    version_number = Column(Integer, nullable=False, default=1)
    user_prompt = Column(Text, nullable=False)  # Contains {{}} syntax
    system_prompt = Column(Text)
    model_config_json = Column("model_config", Text)
    variables_schema_json = Column("variables_schema", Text)
    status = Column(Text, nullable=False, default="draft")  # draft/active/deprecated
    notes = Column(Text)
    created_at = Column(Text, nullable=False, default=utc_now_iso)

    prompt = relationship("Prompt", back_populates="versions")
    tests = relationship("Test", back_populates="prompt_version", cascade="all, delete-orphan")
    datasets = relationship("Dataset", back_populates="prompt_version", cascade="all, delete-orphan")

    model_config = _json_property("model_config_json", dict)
    variables_schema = _json_property("variables_schema_json", list)

    __table_args__ = (
        Index("idx_prompt_version", "prompt_id", "version_number"),
    )

    def render(self, variables: dict) -> str:
        """Render the user prompt after checking required variables.

        Raises:
            ValueError: If a required variable from variables_schema is missing
        """
        variables = variables or {}
        missing = [
            var["name"] for var in self.variables_schema
            if var.get("required") and var["name"] not in variables and var.get("default") is None
        ]
        if missing:
            raise ValueError(f"Missing required variables: {', '.join(missing)}")

        return PromptTemplateParser().render(self.user_prompt, self.merged_variables(variables))

    def render_system(self, variables: dict):
        """Render the system prompt with schema defaults applied. None without a system prompt."""
        if not self.system_prompt:
            return None
        return PromptTemplateParser().render(self.system_prompt, self.merged_variables(variables))

    def merged_variables(self, variables: dict) -> dict:
        """variables on top of the defaults declared in variables_schema."""
        merged = {
            var["name"]: var["default"]
            for var in self.variables_schema
            if var.get("default") is not None
        }
        merged.update(variables or {})
        return merged

    def activate(self, db) -> None:
        """Mark this version active and deprecate the other versions of the prompt."""
        others = db.query(PromptVersion).filter(
            PromptVersion.prompt_id == self.prompt_id,
            PromptVersion.id != self.id,
            PromptVersion.status == "active"
        ).all()
        for other in others:
            other.status = "deprecated"
        self.status = "active"
        db.commit()


class Assistant(Base):
    """Local mirror of an OpenAI Assistant."""
    __tablename__ = "assistants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    assistant_id = Column(Text, nullable=False, unique=True)  # asst_...
    name = Column(Text, nullable=False)
    description = Column(Text)
    metadata_json = Column("metadata", Text)  # instructions, model, tools, tool_resources...
    last_synced_at = Column(Text)
    created_at = Column(Text, nullable=False, default=utc_now_iso)

    tests = relationship("Test", back_populates="assistant", cascade="all, delete-orphan")
    datasets = relationship("Dataset", back_populates="assistant", cascade="all, delete-orphan")

    assistant_metadata = _json_property("metadata_json", dict)

    @property
    def variables_schema(self) -> list:
        # Assistants take free-form user input
        return [{"name": "user_message", "type": "text", "required": False}]


class Dataset(Base):
    """Named set of test-input variable bindings for a testable."""
    __tablename__ = "datasets"

    TYPES = ("single_turn", "conversational")

    id = Column(Integer, primary_key=True, autoincrement=True)
    prompt_version_id = Column(Integer, ForeignKey("prompt_versions.id"), nullable=True)
    assistant_id = Column(Integer, ForeignKey("assistants.id"), nullable=True)
    name = Column(Text, nullable=False)
    description = Column(Text)
    dataset_type = Column(Text, nullable=False, default="single_turn")
    schema_json = Column("schema", Text)
    created_at = Column(Text, nullable=False, default=utc_now_iso)

    prompt_version = relationship("PromptVersion", back_populates="datasets")
    assistant = relationship("Assistant", back_populates="datasets")
    rows = relationship("DatasetRow", back_populates="dataset", cascade="all, delete-orphan")

    schema = _json_property("schema_json", list)

    @property
    def testable(self):
        return self.prompt_version or self.assistant

    def expected_schema(self) -> list:
        """Schema derived from the testable plus conversational fields."""
        schema = list(self.testable.variables_schema) if self.testable else []
        if self.dataset_type == "conversational":
            names = {field["name"] for field in schema}
            schema.extend(f for f in CONVERSATIONAL_FIELDS if f["name"] not in names)
        return schema

    def copy_schema_from_testable(self) -> None:
        self.schema = self.expected_schema()

    def schema_valid(self) -> bool:
        """Check the stored schema still matches the testable's variables."""
        def normalize(schema):
            return sorted(
                (field.get("name"), field.get("type"), bool(field.get("required")))
                for field in schema
            )

        return normalize(self.schema) == normalize(self.expected_schema())


class DatasetRow(Base):
    """One set of variable values in a dataset."""
    __tablename__ = "dataset_rows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    dataset_id = Column(Integer, ForeignKey("datasets.id"), nullable=False)
    row_data_json = Column("row_data", Text, nullable=False, default="{}")
    source = Column(Text, nullable=False, default="manual")  # manual/imported/llm_generated
    created_at = Column(Text, nullable=False, default=utc_now_iso)

    dataset = relationship("Dataset", back_populates="rows")

    row_data = _json_property("row_data_json", dict)


class Test(Base):
    """A test attached to a prompt version or an assistant."""
    __tablename__ = "tests"
    __test__ = False  # not a pytest class

    MODES = ("single_turn", "conversational")

    id = Column(Integer, primary_key=True, autoincrement=True)
    prompt_version_id = Column(Integer, ForeignKey("prompt_versions.id"), nullable=True)
    assistant_id = Column(Integer, ForeignKey("assistants.id"), nullable=True)
    name = Column(Text, nullable=False)
    description = Column(Text)
    test_mode = Column(Text, nullable=False, default="single_turn")
    enabled = Column(Integer, nullable=False, default=1)  # 0=disabled, 1=enabled
    tags_json = Column("tags", Text)
    created_at = Column(Text, nullable=False, default=utc_now_iso)

    prompt_version = relationship("PromptVersion", back_populates="tests")
    assistant = relationship("Assistant", back_populates="tests")
    evaluator_configs = relationship(
        "EvaluatorConfig", back_populates="test", cascade="all, delete-orphan",
        order_by="EvaluatorConfig.created_at"
    )
    test_runs = relationship(
        "TestRun", back_populates="test", cascade="all, delete-orphan",
        order_by="TestRun.id"
    )

    tags = _json_property("tags_json", list)

    @property
    def testable(self):
        return self.prompt_version or self.assistant

    @property
    def testable_type(self) -> str:
        if self.prompt_version_id is not None:
            return "prompt_version"
        if self.assistant_id is not None:
            return "assistant"
        return None

    def pass_rate(self) -> float:
        """Percentage of completed runs that passed."""
        completed = [run for run in self.test_runs if run.is_completed]
        if not completed:
            return 0.0
        passed = sum(1 for run in completed if run.passed)
        return round(passed / len(completed) * 100, 2)

    def last_run(self):
        return self.test_runs[-1] if self.test_runs else None

    def avg_execution_time(self):
        times = [run.execution_time_ms for run in self.test_runs if run.execution_time_ms is not None]
        if not times:
            return None
        return round(sum(times) / len(times))


class EvaluatorConfig(Base):
    """Evaluator attached to a test, with its JSON configuration."""
    __tablename__ = "evaluator_configs"

    MODES = ("scored", "binary")

    id = Column(Integer, primary_key=True, autoincrement=True)
    test_id = Column(Integer, ForeignKey("tests.id"), nullable=False)
    evaluator_key = Column(Text, nullable=False)
    enabled = Column(Integer, nullable=False, default=1)
    evaluation_mode = Column(Text, nullable=False, default="scored")  # scored/binary
    threshold = Column(Integer)  # 0-100
    config_json = Column("config", Text)
    created_at = Column(Text, nullable=False, default=utc_now_iso)

    test = relationship("Test", back_populates="evaluator_configs")

    config = _json_property("config_json", dict)

    __table_args__ = (
        UniqueConstraint("test_id", "evaluator_key", name="uq_evaluator_config_key"),
    )


class TestRun(Base):
    """One execution of a Test against a dataset row or custom variables."""
    __tablename__ = "test_runs"
    __test__ = False

    STATUSES = ("pending", "running", "passed", "failed", "error", "skipped")

    id = Column(Integer, primary_key=True, autoincrement=True)
    test_id = Column(Integer, ForeignKey("tests.id"), nullable=False)
    dataset_id = Column(Integer, ForeignKey("datasets.id"), nullable=True)
    dataset_row_id = Column(Integer, ForeignKey("dataset_rows.id"), nullable=True)
    status = Column(Text, nullable=False, default="pending")
    passed = Column(Integer, nullable=True)  # NULL until completed, 0/1 after
    error_message = Column(Text)
    passed_evaluators = Column(Integer, nullable=False, default=0)
    failed_evaluators = Column(Integer, nullable=False, default=0)
    total_evaluators = Column(Integer, nullable=False, default=0)
    execution_time_ms = Column(Integer)
    cost_usd = Column(Float)
    metadata_json = Column("metadata", Text)
    output_data_json = Column("output_data", Text)
    created_at = Column(Text, nullable=False, default=utc_now_iso)
    started_at = Column(Text)
    finished_at = Column(Text)

    test = relationship("Test", back_populates="test_runs")
    dataset = relationship("Dataset")
    dataset_row = relationship("DatasetRow")
    evaluations = relationship(
        "Evaluation", back_populates="test_run", cascade="all, delete-orphan",
        order_by="Evaluation.id"
    )

    run_metadata = _json_property("metadata_json", dict)
    output_data = _json_property("output_data_json", dict)

    __table_args__ = (
        Index("idx_test_runs_test", "test_id"),
        Index("idx_test_runs_status", "status"),
    )

    @property
    def is_completed(self) -> bool:
        return self.status in ("passed", "failed", "error")

    @property
    def output_messages(self) -> list:
        return self.output_data.get("messages") or []

    @property
    def rendered_prompt(self):
        return self.output_data.get("rendered_prompt")

    @property
    def response_text(self):
        """Content of the last assistant message."""
        for message in reversed(self.output_messages):
            if message.get("role") == "assistant":
                return message.get("content")
        return None

    @property
    def is_multi_turn(self) -> bool:
        return (self.output_data.get("total_turns") or 0) > 1

    @property
    def tokens(self):
        return self.output_data.get("tokens")

    @property
    def total_turns(self) -> int:
        return self.output_data.get("total_turns") or 0

    @property
    def variables_used(self) -> dict:
        if self.dataset_row is not None:
            return self.dataset_row.row_data
        return self.run_metadata.get("custom_variables") or {}

    def evaluator_pass_rate(self) -> float:
        if not self.total_evaluators:
            return 0.0
        return round(self.passed_evaluators / self.total_evaluators * 100, 2)

    def avg_score(self):
        scores = [e.score for e in self.evaluations if e.score is not None]
        if not scores:
            return None
        return round(sum(scores) / len(scores), 2)


class Evaluation(Base):
    """Score produced by one evaluator for one test run."""
    __tablename__ = "evaluations"

    CONTEXTS = ("test_run", "tracked_call", "manual")

    id = Column(Integer, primary_key=True, autoincrement=True)
    test_run_id = Column(Integer, ForeignKey("test_runs.id"), nullable=True)
    evaluator_config_id = Column(Integer, ForeignKey("evaluator_configs.id"), nullable=True)
    evaluator_type = Column(Text, nullable=False)
    score = Column(Float, nullable=False)  # 0-100
    passed = Column(Integer, nullable=False, default=0)
    feedback = Column(Text)
    evaluation_context = Column(Text, nullable=False, default="test_run")
    metadata_json = Column("metadata", Text)
    created_at = Column(Text, nullable=False, default=utc_now_iso)

    test_run = relationship("TestRun", back_populates="evaluations")
    evaluator_config = relationship("EvaluatorConfig")

    evaluation_metadata = _json_property("metadata_json", dict)
