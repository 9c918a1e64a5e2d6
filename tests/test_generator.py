"""End-to-end tests for the service generator."""

from __future__ import annotations

import shutil

import pytest

from tests._fixtures.protos import greeter_file, load_schemas, method, service, types_file
from twirpgen.config import GeneratorConfig
from twirpgen.generator import EmissionError, ServiceGenerator
from twirpgen.imports import RUNTIME_PACKAGES
from twirpgen.postproc.gofmt import FormatError, GoFormatter


def _generate(formatter, *files, config: GeneratorConfig | None = None, names=None):
    names = names or [files[-1].name]
    schemas = load_schemas(files, names, config)
    return ServiceGenerator(config, formatter=formatter).generate(schemas)


def test_generates_one_file_per_schema_with_services(formatter) -> None:
    (generated,) = _generate(formatter, greeter_file())
    assert generated.name == "example.com/app/greeter/greeter.twirp.go"
    lines = generated.content.splitlines()
    assert lines[0] == "// Package greeter is generated by protoc-gen-twirp v0.1.0, DO NOT EDIT."
    assert lines[1] == "// source: greeter/greeter.proto"
    assert lines[2] == "package greeter"


def test_schema_without_services_is_skipped(formatter) -> None:
    assert _generate(formatter, types_file()) == []
    assert formatter.calls == []


def test_sections_appear_in_order(formatter) -> None:
    (generated,) = _generate(formatter, greeter_file())
    content = generated.content
    banners = [
        "// Greeter Interface",
        "// Greeter Protobuf Client",
        "// Greeter JSON Client",
        "// Greeter Server Handler",
    ]
    positions = [content.index(banner) for banner in banners]
    assert positions == sorted(positions)
    assert content.index("func (s *greeterServer) ProtocGenTwirpVersion()") > positions[-1]
    assert content.rstrip().endswith("}")
    assert "var twirpFileDescriptor0SHA" in content


def test_interface_carries_comments_and_signatures(formatter) -> None:
    (generated,) = _generate(formatter, greeter_file())
    content = generated.content
    assert "// Greeter greets callers.\ntype Greeter interface {" in content
    assert "// Greet says hello.\n\tGreet(context.Context, *HelloReq) (*HelloReply, error)" in content


def test_clients_target_method_urls(formatter) -> None:
    (generated,) = _generate(formatter, greeter_file())
    content = generated.content
    assert "func NewGreeterProtobufClient(addr string, client twirp.HTTPClient) Greeter {" in content
    assert "func NewGreeterJSONClient(addr string, client twirp.HTTPClient) Greeter {" in content
    assert 'prefix + "Greet",' in content
    assert "twirp.DoProtobufRequest(ctx, c.client, c.urls[0], in, out)" in content
    assert "twirp.DoJSONRequest(ctx, c.client, c.urls[0], in, out)" in content


def test_router_matches_exact_paths(formatter) -> None:
    (generated,) = _generate(formatter, greeter_file())
    content = generated.content
    assert 'const GreeterPathPrefix = "/pkg.Greeter/"' in content
    assert 'case "/pkg.Greeter/Greet":\n    s.serveGreet(ctx, resp, req)' in content
    assert 'msg := fmt.Sprintf("no handler for path %q", req.URL.Path)' in content
    assert 'if req.Method != "POST" && !twirp.AllowGET(ctx) {' in content


def test_dispatch_routes_content_types_with_form_fallback(formatter) -> None:
    (generated,) = _generate(formatter, greeter_file())
    content = generated.content
    dispatch = content[content.index("func (s *greeterServer) serveGreet(") :]
    dispatch = dispatch[: dispatch.index("\n}\n")]
    assert 'case "application/json":\n    s.serveGreetJSON(ctx, resp, req)' in dispatch
    assert 'case "application/protobuf":\n    s.serveGreetProtobuf(ctx, resp, req)' in dispatch
    assert "default:\n    s.serveGreetForm(ctx, resp, req)" in dispatch
    assert "WithMethodOption" not in content


def test_handlers_decode_each_wire_format(formatter) -> None:
    (generated,) = _generate(formatter, greeter_file())
    content = generated.content
    for codec in ("JSON", "Protobuf", "Form"):
        assert f"func (s *greeterServer) serveGreet{codec}(" in content
    assert content.count("s.hooks.CallRequestRouted(ctx)") == 3
    assert "jsonpb.Unmarshaler{AllowUnknownFields: true}" in content
    assert 'twerr = twerr.WithMeta("cause", fmt.Sprintf("%T", err))' in content
    assert "io.ReadAll(req.Body)" in content
    assert "if err = req.ParseForm(); err != nil {" in content
    assert 'v = strings.Split(v[0], ",")' in content
    assert "reqContent.Ids = vs" in content
    assert "Payload" not in content
    assert content.count('resp.Header().Set("Content-Type", "application/json")') == 2
    assert content.count('resp.Header().Set("Content-Type", "application/protobuf")') == 1


def test_handlers_reject_nil_responses(formatter) -> None:
    (generated,) = _generate(formatter, greeter_file())
    message = (
        "received a nil *HelloReply and nil error while calling Greet. "
        "nil responses are not supported"
    )
    assert generated.content.count(message) == 3
    assert generated.content.count('twirp.InternalError("Internal service panic")') == 3


def test_method_option_is_tagged_on_context(formatter) -> None:
    file = greeter_file(method_trailing=" method_option:admin\n")
    (generated,) = _generate(formatter, file)
    assert 'ctx = twirp.WithMethodOption(ctx, "admin")' in generated.content


def test_validation_then_auth_before_service_call(formatter) -> None:
    file = greeter_file(method_leading=" Greet says hello.\n @auth\n")
    config = GeneratorConfig(validate_enable=True)
    twirp_file, validate_file = _generate(formatter, file, config=config)

    content = twirp_file.content
    assert 'import ctxkit "sniper/util/ctxkit"' in content
    handler = content[content.index("func (s *greeterServer) serveGreetJSON(") :]
    validate_at = handler.index("if validerr := reqContent.validate(); validerr != nil {")
    auth_at = handler.index("if ctxkit.GetUserID(ctx) == 0 {")
    call_at = handler.index("respContent, err = s.Greeter.Greet(ctx, reqContent)")
    assert validate_at < auth_at < call_at
    assert 'twirp.NewError(twirp.Unauthenticated, "need login")' in handler

    assert validate_file.name == "example.com/app/greeter/greeter.validate.go"
    assert "func (m *HelloReq) validate() error {" in validate_file.content
    assert "package greeter" in validate_file.content


def test_validation_without_auth_skips_ctxkit(formatter) -> None:
    config = GeneratorConfig(validate_enable=True)
    twirp_file, _ = _generate(formatter, greeter_file(), config=config)
    assert "reqContent.validate()" in twirp_file.content
    assert "ctxkit" not in twirp_file.content


def test_auth_is_ignored_when_validation_is_off(formatter) -> None:
    file = greeter_file(method_leading=" @auth\n")
    (generated,) = _generate(formatter, file)
    assert "ctxkit" not in generated.content
    assert "validate()" not in generated.content


def test_custom_runtime_package(formatter) -> None:
    config = GeneratorConfig(twirp_package="github.com/twitchtv/twirp")
    (generated,) = _generate(formatter, greeter_file(), config=config)
    assert 'import twirp "github.com/twitchtv/twirp"' in generated.content


def test_foreign_types_are_imported_and_qualified(formatter) -> None:
    file = greeter_file()
    file.dependency.append("common/types.proto")
    file.service.append(service("Health", method("Ping", ".common.Empty", ".common.Empty")))
    (generated,) = _generate(formatter, types_file(), file)
    content = generated.content
    assert 'import common "example.com/app/common"' in content
    assert "\tPing(context.Context, *common.Empty) (*common.Empty, error)" in content
    assert "reqContent := new(common.Empty)" in content
    assert "func (s *healthServer) ServiceDescriptor() ([]byte, int) {" in content


def test_service_index_and_file_counter_in_descriptor_accessor(formatter) -> None:
    other = greeter_file(
        name="other/other.proto", package="other", go_package="example.com/app/other"
    )
    first, second = _generate(
        formatter, greeter_file(), other, names=["greeter/greeter.proto", "other/other.proto"]
    )
    assert "return twirpFileDescriptor0SHA" in first.content
    assert "return twirpFileDescriptor1SHA" in second.content
    assert 'case "/other.Greeter/Greet":' in second.content
    assert second.content.splitlines()[0].startswith("// Package other ")


def test_output_is_identical_across_runs(formatter) -> None:
    first = _generate(formatter, greeter_file())
    second = _generate(formatter, greeter_file())
    assert first == second


def test_runtime_names_are_registered_for_the_run(formatter) -> None:
    generator = ServiceGenerator(formatter=formatter)
    for name in RUNTIME_PACKAGES:
        assert generator.run.registry.alias(name) == name


class RejectingFormatter:
    def format(self, source: str) -> str:
        raise FormatError("<standard input>:12:3: expected declaration")


def test_format_failure_raises_emission_error_with_numbered_source() -> None:
    schemas = load_schemas([greeter_file()], ["greeter/greeter.proto"])
    generator = ServiceGenerator(formatter=RejectingFormatter())
    with pytest.raises(EmissionError) as excinfo:
        generator.generate(schemas)
    message = str(excinfo.value)
    assert "bad Go source code was generated for example.com/app/greeter/greeter.twirp.go" in message
    assert "expected declaration" in message
    assert "    1\t// Package greeter is generated" in message
    assert excinfo.value.source.startswith("// Package greeter")


def test_configured_templates_dir_overrides_bundled_templates(formatter, tmp_path) -> None:
    (tmp_path / "metadata.go.j2").write_text(
        "func (s *{{ server_struct }}) ProtocGenTwirpVersion() string {\n"
        '  return "custom"\n'
        "}\n",
        encoding="utf-8",
    )
    config = GeneratorConfig(templates_dir=tmp_path)
    (generated,) = _generate(formatter, greeter_file(), config=config)
    assert 'return "custom"' in generated.content
    assert "ServiceDescriptor()" not in generated.content
    assert "func (s *greeterServer) serveGreetJSON(" in generated.content


def test_run_buffer_is_emptied_between_schemas(formatter) -> None:
    other = greeter_file(
        name="other/other.proto", package="other", go_package="example.com/app/other"
    )
    schemas = load_schemas(
        [greeter_file(), other], ["greeter/greeter.proto", "other/other.proto"]
    )
    generator = ServiceGenerator(formatter=formatter)
    _, second = generator.generate(schemas)

    assert generator.run.emitter.getvalue() == ""
    assert second.content.count("// Package ") == 1
    assert "package greeter" not in second.content


@pytest.mark.skipif(shutil.which("gofmt") is None, reason="gofmt not installed")
def test_full_output_passes_real_gofmt() -> None:
    file = greeter_file(
        method_leading=" Greet says hello.\n @auth\n",
        method_trailing=" method_option:admin\n",
    )
    file.dependency.append("common/types.proto")
    file.service.append(service("Health", method("Ping", ".common.Empty", ".common.Empty")))
    config = GeneratorConfig(validate_enable=True)
    schemas = load_schemas([types_file(), file], [file.name], config)

    twirp_file, validate_file = ServiceGenerator(config, formatter=GoFormatter()).generate(schemas)

    content = twirp_file.content
    assert "\tif ctxkit.GetUserID(ctx) == 0 {" in content
    assert '\tctx = twirp.WithMethodOption(ctx, "admin")' in content
    assert "func (s *healthServer) servePingForm(" in content
    assert "reqContent.Ids = vs" in content
    assert "strconv.ParseBool(v[0])" in content
    assert "strconv.ParseFloat(v[0], 64)" in content
    assert "func (m *HelloReq) validate() error {" in validate_file.content
