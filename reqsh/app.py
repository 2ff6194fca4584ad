"""reqsh app - wires parsed commands to the workspace, stores and executor."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from reqsh import __version__
from reqsh.auth import AuthManager, preset_from_flags
from reqsh.config import GlobalConfig, Workspace, detect_workspace, load_global_config
from reqsh.errors import EnvVarNotFoundError, ValidationError
from reqsh.executor import Executor
from reqsh.formatter import check_format, format_response
from reqsh.models import HttpMethod, Request
from reqsh.parser import AuthCommand, Command, ParsedRequest, RecallOptions, SimpleCommand
from reqsh.storage import CallStore, SavedCall
from reqsh.template import Template, substitute_env_vars

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = f"reqsh/{__version__}"

USAGE = """\
reqsh - HTTP requests from the command line

Usage:
  reqsh <METHOD> <URL> [OPTIONS] [path=value]... [query==value]...
  reqsh recall <name> [-H K:V]... [--env NAME] [key=value]...
  reqsh list
  reqsh delete <name>
  reqsh auth list
  reqsh auth add <basic|bearer|custom> <name> [key=value]...
  reqsh auth remove <name>

Options:
  -H KEY:VALUE           Add a header (also -HKEY:VALUE or KEY=VALUE)
  -d DATA                Request body (also -dDATA); read from stdin if piped
  --save NAME            Save the request as a named call
  --dry                  Save without executing (requires --save)
  --info                 Show response headers, timing and size
  --no-interactive       Fail instead of prompting for {path} variables
  --env NAME             Use a named environment from .reqsh.yaml
  --format FORMAT        Body output format: json | raw
  --auth PRESET          Apply a saved auth preset
  -v, --version          Print version
  -h, --help             Print this help

Templates:
  {name}    path variable, from name=value arguments or a prompt
  ${NAME}   env variable, from .env and the selected environment

Examples:
  reqsh get https://api.example.com/users limit==10
  reqsh post https://api.example.com/users -d '{"name":"John"}' -H 'Authorization: Bearer xyz'
  reqsh get '${API}/users/{userId}' userId=42 --save get-user
  reqsh recall get-user userId=7
  reqsh auth add bearer my-api token=abc123
"""


def is_absolute_url(url: str) -> bool:
    return url.startswith(("http://", "https://"))


def join_base_url(base_url: str, url: str, env: dict[str, str] | None = None) -> str:
    """Prefix a relative URL with the workspace base URL.

    Absoluteness is judged after ${ENV} substitution, so ${API}/users stays
    as is when API holds a full URL.
    """
    if not base_url or is_absolute_url(substitute_env_vars(url, env or {})):
        return url
    return base_url.rstrip("/") + "/" + url.lstrip("/")


class App:
    """One command invocation against one workspace."""

    def __init__(
        self,
        workspace: Workspace,
        global_config: GlobalConfig | None = None,
        store: CallStore | None = None,
        auth_manager: AuthManager | None = None,
        executor: Executor | None = None,
        is_tty: bool = False,
    ):
        self.workspace = workspace
        self.global_config = global_config or GlobalConfig()
        self.store = store or CallStore(workspace.root)
        self.auth_manager = auth_manager or AuthManager(workspace.root)
        self.executor = executor
        self.is_tty = is_tty

    def run(self, command: Command) -> None:
        if isinstance(command, ParsedRequest):
            self.execute_request(command)
        elif isinstance(command, RecallOptions):
            self.execute_recall(command)
        elif isinstance(command, AuthCommand):
            self.handle_auth(command)
        elif isinstance(command, SimpleCommand):
            self.handle_simple(command)
        else:
            raise TypeError(f"unsupported command: {command!r}")

    # ── Requests ────────────────────────────────────────────────────────

    def execute_request(self, req: ParsedRequest) -> None:
        check_format(req.format)
        if req.dry and not req.save:
            raise ValidationError("--dry requires --save to specify a name")

        # stdin holding the body cannot also answer prompts.
        body_from_stdin = False
        if not req.body:
            req.body = self._read_stdin_body()
            body_from_stdin = bool(req.body)

        # Dry runs store the call as typed, templates unresolved.
        if req.dry:
            self._save_call(req)
            return

        if req.env:
            env = self.workspace.environment(req.env)
        else:
            env = self.workspace.environment(self.global_config.default_environment, required=False)

        headers = self._merge_headers(req.headers)
        headers = {k: substitute_env_vars(v, env) for k, v in headers.items()}
        body = substitute_env_vars(req.body, env)

        base_url = self.workspace.config.base_url if self.workspace.config else ""
        url = self.resolve_url(
            join_base_url(base_url, req.url, env),
            env,
            req.path_params,
            req.no_interactive or body_from_stdin,
        )

        auth = self.auth_manager.get(req.auth) if req.auth else None

        request = Request(
            method=req.method,
            url=url,
            headers=headers,
            query_params=dict(req.query_params),
            body=body,
            timeout=self.global_config.timeout_seconds(),
            auth=auth,
        )
        executor = self.executor or Executor(timeout=request.timeout)
        try:
            resp = executor.execute(request)
        finally:
            if executor is not self.executor:
                executor.close()

        if req.save:
            self._save_call(req)

        click.echo(
            format_response(
                resp,
                show_info=req.info,
                fmt=req.format,
                is_tty=self.is_tty,
                pretty=self.global_config.pretty_print,
            ),
        )

    def resolve_url(
        self,
        url: str,
        env: dict[str, str],
        path_params: dict[str, str],
        no_interactive: bool,
    ) -> str:
        """Resolve ${ENV} then {path} placeholders in a URL.

        Missing path variables are prompted for unless ``no_interactive``.
        Env vars are checked before any prompt is shown.
        """
        tmpl = Template(url, env_vars=env)
        for name in tmpl.extract_env_vars():
            if name not in env:
                raise EnvVarNotFoundError(name)

        for name in tmpl.extract_path_vars():
            if name in path_params:
                tmpl.path_vars[name] = path_params[name]
            elif not no_interactive:
                tmpl.path_vars[name] = click.prompt(f"Enter value for {{{name}}}", default="", show_default=False)
        return tmpl.resolve()

    def _merge_headers(self, cli_headers: dict[str, str]) -> dict[str, str]:
        """Workspace defaults, then CLI headers on top, then a User-Agent if none."""
        headers: dict[str, str] = {}
        if self.workspace.config:
            headers.update(self.workspace.config.default_headers)
        headers.update(cli_headers)
        if not any(k.lower() == "user-agent" for k in headers):
            headers["User-Agent"] = self.global_config.user_agent or DEFAULT_USER_AGENT
        return headers

    def _read_stdin_body(self) -> str:
        if sys.stdin is None or sys.stdin.isatty():
            return ""
        data = sys.stdin.read()
        if data:
            logger.debug("read %d chars of body from stdin", len(data))
        return data

    def _save_call(self, req: ParsedRequest) -> None:
        call = SavedCall(
            name=req.save,
            method=req.method,
            url=req.url,
            headers=dict(req.headers),
            query_params=dict(req.query_params),
            body=req.body,
        )
        self.store.save(call)
        click.echo(f"Saved call: {req.save}")

    def execute_recall(self, opts: RecallOptions) -> None:
        call = self.store.load(opts.name)
        req = ParsedRequest(
            method=HttpMethod.parse(call.method).value,
            url=call.url,
            headers={**call.headers, **opts.headers},
            query_params=dict(call.query_params),
            path_params=dict(opts.parameter_override),
            body=call.body,
            env=opts.env,
            no_interactive=opts.no_interactive,
        )
        self.execute_request(req)

    # ── Saved calls ─────────────────────────────────────────────────────

    def list_calls(self) -> None:
        calls = self.store.list()
        if not calls:
            click.echo("No saved calls found")
            return
        click.echo("Saved calls:")
        for call in calls:
            label = f"  {call.name} ({call.method} {call.url})"
            if call.description:
                label += f" - {call.description}"
            click.echo(label)

    def delete_call(self, name: str) -> None:
        self.store.delete(name)
        click.echo(f"Deleted: {name}")

    # ── Auth presets ────────────────────────────────────────────────────

    def handle_auth(self, cmd: AuthCommand) -> None:
        if cmd.subcommand == "list":
            presets = self.auth_manager.list()
            if not presets:
                click.echo("No authentication presets configured.")
                return
            click.echo("Authentication presets:")
            for preset in presets:
                click.echo(f"  {preset.name} ({preset.type})")
        elif cmd.subcommand == "add":
            preset = preset_from_flags(cmd.type, cmd.name, cmd.flags)
            self.auth_manager.add(preset)
            click.echo(f"Added auth preset: {preset.name}")
        elif cmd.subcommand == "remove":
            self.auth_manager.remove(cmd.name)
            click.echo(f"Removed auth preset: {cmd.name}")
        else:
            raise ValidationError(f"unknown auth subcommand: {cmd.subcommand}")

    def handle_simple(self, cmd: SimpleCommand) -> None:
        if cmd.kind == "version":
            click.echo(f"reqsh version {__version__}")
        elif cmd.kind == "help":
            click.echo(USAGE)
        elif cmd.kind == "list":
            self.list_calls()
        elif cmd.kind == "delete":
            self.delete_call(cmd.name)
        else:
            raise ValidationError(f"unknown command: {cmd.kind}")


def build_app(start: str | Path | None = None, is_tty: bool = False) -> App:
    """Detect the workspace and load everything an App needs."""
    workspace = detect_workspace(start)
    auth_manager = AuthManager(workspace.root)
    auth_manager.load()
    return App(
        workspace=workspace,
        global_config=load_global_config(),
        store=CallStore(workspace.root),
        auth_manager=auth_manager,
        is_tty=is_tty,
    )
