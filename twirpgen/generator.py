"""Emits Twirp interfaces, clients and servers for each schema with services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Protocol

from jinja2 import Environment

from . import GENERATOR_VERSION
from .codecs import CLIENT_CODECS, SERVER_CODECS, Codec
from .config import GeneratorConfig
from .descriptor import descriptor_var_name, emit_descriptor, pack_descriptor
from .emit.templates import create_environment
from .emit.text import TextEmitter
from .formdecode import FormDecoderGenerator
from .imports import RUNTIME_PACKAGES, NameRegistry, collect_dependencies, qualified_type
from .logging import get_logger
from .models import Message, Method, Schema, Service, comment_lines
from .naming import go_quote, unexported
from .postproc.gofmt import FormatError, GoFormatter, number_lines
from .validate import TemplateValidateRenderer, ValidateRenderer


class EmissionError(RuntimeError):
    """Raised when generated source fails the syntax check.

    This is a bug in the generator, never in the input. ``source`` holds the
    offending text.
    """

    def __init__(self, message: str, source: str) -> None:
        super().__init__(message)
        self.source = source


class Formatter(Protocol):
    def format(self, source: str) -> str:
        """Return canonically formatted source or raise FormatError."""


@dataclass
class GeneratedFile:
    name: str
    content: str


@dataclass
class RunContext:
    """State shared by every schema of one generator run."""

    registry: NameRegistry = field(default_factory=NameRegistry)
    files_handled: int = 0
    emitter: TextEmitter = field(default_factory=TextEmitter)


@dataclass
class FileContext:
    """State for the schema currently being emitted."""

    run: RunContext
    schema: Schema
    deps: Dict[str, str]
    pkgs: Dict[str, str]
    emitter: TextEmitter

    def type_name(self, message: Message) -> str:
        return qualified_type(message, self.deps)

    @property
    def uses_auth(self) -> bool:
        return any(
            method.options.requires_auth
            for service in self.schema.services
            for method in service.methods
        )


def server_struct(service: Service) -> str:
    return unexported(service.go_name) + "Server"


def path_prefix_const(service: Service) -> str:
    return service.go_name + "PathPrefix"


class ServiceGenerator:
    """Drives emission of ``<prefix>.twirp.go`` for every schema in a run.

    One instance must be used for the whole run: the import alias registry and
    the handled-file counter that salts descriptor variable names live on it.
    """

    def __init__(
        self,
        config: GeneratorConfig | None = None,
        *,
        formatter: Formatter | None = None,
        env: Environment | None = None,
        validate_renderer: ValidateRenderer | None = None,
    ) -> None:
        self.config = config or GeneratorConfig()
        self.formatter = formatter or GoFormatter(self.config.gofmt)
        self.env = env or create_environment(self.config.templates_dir)
        self.validate_renderer = validate_renderer or TemplateValidateRenderer(self.env)
        self.logger = get_logger("generator")
        self.run = RunContext()
        for name in RUNTIME_PACKAGES:
            self.run.registry.register(name)

    def generate(self, schemas: Iterable[Schema]) -> List[GeneratedFile]:
        """Generate every output file; raises before returning anything on failure."""
        outputs: List[GeneratedFile] = []
        for schema in schemas:
            if not schema.services:
                self.logger.debug("Skipping %s: no services", schema.path)
                continue
            self.logger.info("Generating %s.twirp.go from %s", schema.filename_prefix, schema.path)
            outputs.append(self.generate_file(schema))
            if self.config.validate_enable:
                outputs.append(self.generate_validate(schema))
            self.run.files_handled += 1
        return outputs

    def generate_file(self, schema: Schema) -> GeneratedFile:
        ctx = FileContext(
            run=self.run,
            schema=schema,
            deps=collect_dependencies(schema),
            pkgs=self.run.registry.aliases(),
            emitter=self.run.emitter,
        )
        # The run shares one buffer; it is emptied after every schema.
        try:
            self._emit_header(ctx)
            self._emit_imports(ctx)
            for index, service in enumerate(schema.services):
                self._emit_service(ctx, service, index)
            self._emit_file_descriptor(ctx)
            raw = ctx.emitter.getvalue()
        finally:
            ctx.emitter.reset()

        name = schema.filename_prefix + ".twirp.go"
        return GeneratedFile(name=name, content=self._formatted(name, raw))

    def generate_validate(self, schema: Schema) -> GeneratedFile:
        name = schema.filename_prefix + ".validate.go"
        raw = self.validate_renderer.render(schema)
        return GeneratedFile(name=name, content=self._formatted(name, raw))

    def _formatted(self, name: str, raw: str) -> str:
        try:
            return self.formatter.format(raw)
        except FormatError as exc:
            self.logger.error("bad Go source code was generated for %s: %s", name, exc)
            raise EmissionError(
                f"bad Go source code was generated for {name}: {exc}\n{number_lines(raw)}",
                raw,
            ) from exc

    def _emit_header(self, ctx: FileContext) -> None:
        schema = ctx.schema
        e = ctx.emitter
        e.emit(
            "// Package ",
            schema.go_package_name,
            " is generated by protoc-gen-twirp ",
            GENERATOR_VERSION,
            ", DO NOT EDIT.",
        )
        e.emit("// source: ", schema.path)
        e.emit("package ", schema.go_package_name)
        e.emit()

    def _emit_imports(self, ctx: FileContext) -> None:
        e = ctx.emitter
        pkgs = ctx.pkgs
        for name, path in (
            ("bytes", "bytes"),
            ("strings", "strings"),
            ("context", "context"),
            ("fmt", "fmt"),
            ("strconv", "strconv"),
            ("errors", "errors"),
            ("io", "io"),
            ("http", "net/http"),
        ):
            e.emit("import ", pkgs[name], " ", go_quote(path))
        e.emit()
        e.emit("import ", pkgs["jsonpb"], ' "github.com/golang/protobuf/jsonpb"')
        e.emit("import ", pkgs["proto"], ' "github.com/golang/protobuf/proto"')
        e.emit("import ", pkgs["twirp"], " ", go_quote(self.config.twirp_package))
        if self.config.validate_enable and ctx.uses_auth:
            e.emit("import ", pkgs["ctxkit"], " ", go_quote(self.config.ctxkit_package))
        e.emit()

        # A message may come from another package; its import is keyed by short name.
        for short_name, quoted_path in ctx.deps.items():
            e.emit("import ", short_name, " ", quoted_path)
        if ctx.deps:
            e.emit()

        e.emit("// If the request does not have any number field, the strconv")
        e.emit("// is not needed. However, there is no easy way to drop it.")
        e.emit("var _ = ", pkgs["strconv"], ".IntSize")
        e.emit()

    def _emit_service(self, ctx: FileContext, service: Service, index: int) -> None:
        e = ctx.emitter
        e.section_banner(service.go_name + " Interface")
        self._emit_interface(ctx, service)

        for codec in CLIENT_CODECS:
            e.section_banner(f"{service.go_name} {codec.name} Client")
            self._emit_client(ctx, service, codec)

        e.section_banner(service.go_name + " Server Handler")
        self._emit_server(ctx, service)
        for method in service.methods:
            self._emit_server_method(ctx, service, method)
        self._emit_metadata_accessors(ctx, service, index)

    def _emit_interface(self, ctx: FileContext, service: Service) -> None:
        e = ctx.emitter
        self._emit_comments(e, service.comments.leading)
        e.emit("type ", service.go_name, " interface {")
        for method in service.methods:
            self._emit_comments(e, method.comments.leading)
            e.emit("\t", self._signature(ctx, method))
            e.emit()
        e.emit("}")

    def _signature(self, ctx: FileContext, method: Method) -> str:
        return "{name}({context}.Context, *{input}) (*{output}, error)".format(
            name=method.go_name,
            context=ctx.pkgs["context"],
            input=ctx.type_name(method.input),
            output=ctx.type_name(method.output),
        )

    def _emit_comments(self, emitter: TextEmitter, text: str) -> None:
        for line in comment_lines(text):
            emitter.emit(line)

    def _emit_client(self, ctx: FileContext, service: Service, codec: Codec) -> None:
        calls = [
            {
                "method": method,
                "input_type": ctx.type_name(method.input),
                "output_type": ctx.type_name(method.output),
            }
            for method in service.methods
        ]
        self._render(
            ctx,
            "client.go.j2",
            codec=codec,
            service=service,
            calls=calls,
            struct_name=unexported(service.go_name) + codec.name + "Client",
            constructor="New" + service.go_name + codec.name + "Client",
            path_prefix_const=path_prefix_const(service),
        )

    def _emit_server(self, ctx: FileContext, service: Service) -> None:
        self._render(
            ctx,
            "server.go.j2",
            service=service,
            server_struct=server_struct(service),
            path_prefix_const=path_prefix_const(service),
        )

    def _emit_server_method(self, ctx: FileContext, service: Service, method: Method) -> None:
        self._render(
            ctx,
            "dispatch.go.j2",
            method=method,
            codecs=SERVER_CODECS,
            server_struct=server_struct(service),
        )
        for codec in SERVER_CODECS:
            self._emit_handler(ctx, service, method, codec)

    def _emit_handler(self, ctx: FileContext, service: Service, method: Method, codec: Codec) -> None:
        output_type = ctx.type_name(method.output)
        form_fields = ""
        if codec.decodes_form:
            form_fields = FormDecoderGenerator(ctx.pkgs).render(method.input)
        self._render(
            ctx,
            "handler.go.j2",
            codec=codec,
            service=service,
            method=method,
            server_struct=server_struct(service),
            input_type=ctx.type_name(method.input),
            output_type=output_type,
            form_fields=form_fields,
            validate=self.config.validate_enable,
            requires_auth=method.options.requires_auth,
            nil_response_message=(
                f"received a nil *{output_type} and nil error while calling "
                f"{method.go_name}. nil responses are not supported"
            ),
        )

    def _emit_metadata_accessors(self, ctx: FileContext, service: Service, index: int) -> None:
        self._render(
            ctx,
            "metadata.go.j2",
            server_struct=server_struct(service),
            descriptor_var=self._descriptor_var(ctx),
            service_index=index,
            version=GENERATOR_VERSION,
        )

    def _emit_file_descriptor(self, ctx: FileContext) -> None:
        packed = pack_descriptor(ctx.schema.descriptor)
        emit_descriptor(ctx.emitter, self._descriptor_var(ctx), packed)

    def _descriptor_var(self, ctx: FileContext) -> str:
        return descriptor_var_name(ctx.run.files_handled, ctx.schema.descriptor.name)

    def _render(self, ctx: FileContext, template_name: str, **values: object) -> None:
        template = self.env.get_template(template_name)
        ctx.emitter.write(
            template.render(pkgs=ctx.pkgs, package=ctx.schema.package, **values)
        )


__all__ = [
    "EmissionError",
    "FileContext",
    "Formatter",
    "GeneratedFile",
    "RunContext",
    "ServiceGenerator",
]
