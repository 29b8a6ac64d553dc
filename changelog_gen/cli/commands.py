"""CLI Commands"""

import os
import sys

from changelog_gen.config import ENV_OVERRIDES, load_config, get_config_path
from changelog_gen.output import bold, dim, info


def display_config() -> int:
    """Display current configuration."""
    config = load_config()
    config_path = get_config_path()

    print(f"\n{bold('Current Configuration')}\n")

    if config_path:
        print(f"  {dim('Loaded from:')} {config_path}")
    else:
        print(f"  {dim('Loaded from:')} defaults (no .changelogrc found)")

    overrides = [(var, os.environ[var]) for var in (*ENV_OVERRIDES, 'CLG_TIMEOUT', 'OLLAMA_HOST') if os.environ.get(var)]
    if overrides:
        print(f"  {dim('Environment overrides:')}")
        for var, value in overrides:
            print(f"    {var}={value}")
    if os.environ.get('ANTHROPIC_API_KEY'):
        print(f"  {dim('ANTHROPIC_API_KEY is set')}")

    print()
    print(f"  {bold('Settings:')}")
    print(f"    provider:            {info(config.provider)}")
    print(f"    model:               {info(config.model or 'auto (by change size)')}")
    print(f"    analysis_mode:       {info(config.analysis_mode)}")
    print(f"    output_format:       {info(config.output_format)}")
    print(f"    output_file:         {info(config.output_file or 'stdout')}")
    print(f"    max_commits:         {info(str(config.max_commits))}")
    print(f"    include_metrics:     {info(str(config.include_metrics).lower())}")
    print(f"    include_attribution: {info(str(config.include_attribution).lower())}")

    print(f"\n  {dim('Config locations:')}")
    print(f"    Local:  .changelogrc (in current directory)")
    print(f"    Global: ~/.changelogrc\n")

    return 0


def run_install_completion() -> int:
    """Install shell tab completion."""
    shell = os.environ.get('SHELL', '')

    print(f"\n{bold('Tab Completion Setup')}\n")

    line = 'eval "$(register-python-argcomplete clg)"'
    if 'zsh' in shell or 'bash' in shell:
        rc_name = '.zshrc' if 'zsh' in shell else '.bashrc'
        rc_file = os.path.expanduser(f'~/{rc_name}')
        print(f"Add this line to {dim(rc_file)}:\n")
        print(f"  {line}\n")
        print(f"Then run: {dim(f'source ~/{rc_name}')}")
    elif sys.platform == 'win32':
        print("For PowerShell, run:\n")
        print("  register-python-argcomplete --shell powershell clg | Out-String | Invoke-Expression\n")
        print("To make it permanent, add the same line to your $PROFILE")
    else:
        print("Run one of these based on your shell:\n")
        print(f"  {dim('# Bash/Zsh')}")
        print(f'  {line}\n')
        print(f"  {dim('# Fish')}")
        print("  register-python-argcomplete --shell fish clg | source")

    print(f"\n{dim('After setup, press TAB to autocomplete flags.')}")
    return 0
