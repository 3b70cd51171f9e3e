# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Command Line Interface for RCL.
"""
import functools
import click
from ..PARSERS.config_parser import ConfigParser
from ..RUNNERS.command_builder import CommandBuilder
from ..RUNNERS.process_runner import ProcessRunner
from ..MANAGERS.environment_manager import EnvironmentManager
from ..MANAGERS.readiness import ReadinessProbe
from ..UTILS.port_finder import is_port_free, find_port_owner

CONFIG_ERROR = 2


def launch_options(f):
    """
    Options that override the launch configuration, shared by every command.
    """
    options = [
        click.option('--name', help='Container name'),
        click.option('--ip', help='Address the cluster nodes announce (sets IP=...)'),
        click.option('--env', '-e', 'env_pairs', multiple=True, metavar='KEY=VALUE',
                     help='Extra container environment variable'),
        click.option('--env-file', 'env_files', multiple=True, type=click.Path(),
                     help='Read container environment variables from a .env file'),
        click.option('--port', '-p', 'ports', multiple=True, metavar='SPEC',
                     help='Publish ports, e.g. 7000-7005 or 17000:7000 (replaces defaults)'),
        click.option('--image', help='Image reference'),
        click.option('--runtime', help='Container runtime executable'),
        click.option('--no-rm', 'no_remove', is_flag=True, help='Keep the container after it exits'),
        click.option('--no-init', 'no_init', is_flag=True, help='Do not run an init process in the container'),
        click.option('--no-tty', 'no_tty', is_flag=True, help='Do not allocate a pseudo-terminal'),
    ]
    for option in reversed(options):
        f = option(f)

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context()
        overrides = {key: kwargs.pop(key) for key in
                     ('name', 'ip', 'image', 'runtime', 'env_files', 'ports')}
        for flag in ('remove', 'init', 'tty'):
            # the --no-* flags can only switch a setting off
            overrides[flag] = False if kwargs.pop(f'no_{flag}') else None
        env_pairs = kwargs.pop('env_pairs')
        try:
            overrides['environment'] = EnvironmentManager.parse_pairs(env_pairs)
            parser = ConfigParser()
            config = parser.load((ctx.obj or {}).get('file'), overrides)
        except (ValueError, OSError) as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(CONFIG_ERROR)
        return f(config, *args, **kwargs)
    return wrapper


@click.group(invoke_without_command=True)
@click.option('--file', '-f', default='rcl.yml', help='Config file path (optional)')
@click.pass_context
def cli(ctx, file):
    """
    RCL - Redis Cluster Launcher.

    Starts the grokzen/redis-cluster image with ports 7000-7005 published.
    Without a command, runs 'up'.
    """
    ctx.ensure_object(dict)
    ctx.obj['file'] = file
    if ctx.invoked_subcommand is None:
        ctx.invoke(up)


@cli.command()
@click.option('--exec/--wait', 'replace', default=True,
              help='Replace this process with the runtime (default) or wait for it')
@launch_options
@click.pass_context
def up(ctx, config, replace):
    """Start the cluster in the foreground."""
    command = CommandBuilder().build(config)
    runner = ProcessRunner(config.name)
    if replace:
        code = runner.exec(command)
    else:
        code = runner.run(command)
    ctx.exit(code)


@cli.command()
@launch_options
def show(config):
    """Print the runtime command without running it."""
    builder = CommandBuilder()
    click.echo(builder.render(builder.build(config)))


@cli.command()
@launch_options
def nodes(config):
    """Print the seed node URLs for cluster clients."""
    for url in config.node_urls():
        click.echo(url)


@cli.command()
@launch_options
@click.pass_context
def check(ctx, config):
    """Report whether the published host ports are free."""
    click.echo(f"Image: {config.image_reference.full_name}")
    click.echo(f"{'PORT':8} {'STATUS':10}")
    click.echo("-" * 30)
    busy = 0
    for mapping in config.ports:
        if is_port_free(mapping.host, mapping.host_ip or ''):
            click.echo(f"{mapping.host:<8} {'free':10}")
            continue
        busy += 1
        owner = find_port_owner(mapping.host)
        detail = f"pid {owner[0]} ({owner[1]})" if owner else ""
        click.echo(f"{mapping.host:<8} {'in use':10} {detail}".rstrip())
    if busy:
        ctx.exit(1)


@cli.command()
@click.option('--timeout', default=60.0, show_default=True, help='Seconds to wait')
@click.option('--interval', default=1.0, show_default=True, help='Seconds between attempts')
@launch_options
@click.pass_context
def wait(ctx, config, timeout, interval):
    """Wait until every published port accepts connections.

    Open ports mean the nodes are listening, not that the cluster has formed.
    """
    down = ReadinessProbe(config, timeout=timeout, interval=interval).wait()
    if down:
        ports = ", ".join(str(port) for _, port in down)
        click.echo(f"Error: timed out after {timeout}s waiting for ports: {ports}", err=True)
        ctx.exit(1)
    click.echo("All cluster ports accept connections.")


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
