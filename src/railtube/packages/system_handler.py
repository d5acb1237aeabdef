"""Handler for system-wide package index updates."""

from railtube.packages.base import ExecutionStrategy
from railtube.system.command import Command, CommandOutcome
from railtube.system.worker import Worker


class SystemHandler:
    """Runs the platform update command."""

    name = "system"
    label = "System"
    strategy = ExecutionStrategy.SEQUENTIAL

    def __init__(self, system: Worker) -> None:
        self.system = system

    def update_command(self) -> Command:
        return Command(executable="apt", args=["update"], sudo=True)

    async def update(self, dry_run: bool) -> CommandOutcome:
        """Refresh the package index.

        Args:
            dry_run: Describe the command without running it

        Returns:
            Outcome of the update

        Raises:
            CommandError: If the update fails
        """
        cmd = self.update_command()
        if dry_run:
            return CommandOutcome(cmd.command_string, 0)
        return await self.system.run(cmd)
