"""CommandBuilder: builds the assistant command line for each session mode."""

from typing import List, Optional

from checkout.session.prompts import render_prompt


class CommandBuilder:
    """Builds assistant CLI commands.

    Args:
        assistant_command: Executable to run, ``claude`` by default.
        namespace: Skill namespace used in slash-command prompts.
    """

    def __init__(self, assistant_command: str = "claude", namespace: str = ""):
        self._assistant_command = assistant_command
        self._namespace = namespace

    def _with_prompt(self, prompt: Optional[str]) -> List[str]:
        if prompt:
            return [self._assistant_command, prompt]
        return [self._assistant_command]

    def _slash_command(self, template_name: str, pr_number: int) -> List[str]:
        prompt = render_prompt(
            template_name,
            namespace=self._namespace,
            pr_number=pr_number,
        )
        return self._with_prompt(prompt)

    def build_plain_command(self, prompt: Optional[str] = None) -> List[str]:
        return self._with_prompt(prompt)

    def build_checkout_pr_command(self, pr_number: int) -> List[str]:
        return self._slash_command("checkout_pr.j2", pr_number)

    def build_review_command(self, pr_number: int) -> List[str]:
        return self._slash_command("review_pr.j2", pr_number)
