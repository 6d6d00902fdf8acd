"""Registry discovering and serving the agents known to the backend."""
from __future__ import annotations

import importlib
import pkgutil
from typing import Any, Dict, List, Optional

from personal_ai.agents.base import agent_parameters
from personal_ai.core.errors import AgentNotFoundError
from personal_ai.core.logging import logger
from personal_ai.core.models import ParameterDefinition
from personal_ai.core.parameters import schema_violations


class AgentRegistry:
    """Maps declared agent ids to agent objects.

    ``initialize`` imports every module of ``package`` once and registers the
    module-level ``agent`` it exposes. The map is treated as read-only after
    startup, so lookups need no locking.
    """

    def __init__(self, package: Optional[str] = None) -> None:
        self._package = package
        self._agents: Dict[str, Any] = {}
        self._initialized = False
        self.loaded_count = 0
        self.error_count = 0

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """Scan the agent package and populate the registry. Later calls are no-ops."""
        if self._initialized:
            logger.debug("Agent registry already initialized")
            return
        self._scan()
        self._initialized = True

    def reinitialize(self) -> None:
        """Clear the registry and scan the agent package again."""
        self._agents.clear()
        self._initialized = False
        self.initialize()

    def register(self, agent: Any, source: str = "explicit registration") -> bool:
        """Insert an agent under its declared id; invalid candidates are skipped."""
        agent_id = getattr(agent, "id", None)
        execute = getattr(agent, "execute", None)
        if not isinstance(agent_id, str) or not agent_id or not callable(execute):
            logger.warning(f"Invalid agent structure in {source}. Skipping.")
            return False

        definitions = agent_parameters(agent)
        if not all(isinstance(d, ParameterDefinition) for d in definitions):
            logger.warning(f"Invalid parameter list for agent '{agent_id}' in {source}. Skipping.")
            return False
        problems = schema_violations(definitions)
        if problems:
            logger.warning(
                f"Invalid parameter schema for agent '{agent_id}' in {source}: "
                f"{' '.join(problems)} Skipping."
            )
            return False

        if agent_id in self._agents:
            logger.warning(f"Duplicate agent ID '{agent_id}' found in {source}. Overwriting existing entry.")
        self._agents[agent_id] = agent
        logger.info(f"Registered agent: {agent_id} ({getattr(agent, 'name', agent_id)}) from {source}")
        return True

    def unregister(self, agent_id: str) -> Optional[Any]:
        return self._agents.pop(agent_id, None)

    def get_agent(self, agent_id: str) -> Optional[Any]:
        return self._agents.get(agent_id)

    def require(self, agent_id: str) -> Any:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return agent

    def list_agents(self) -> List[Any]:
        return list(self._agents.values())

    def _scan(self) -> None:
        self.loaded_count = 0
        self.error_count = 0
        if not self._package:
            logger.info("No agent package configured; registry starts empty")
            return

        logger.info(f"Initializing agent registry from package '{self._package}'")
        try:
            package = importlib.import_module(self._package)
        except ImportError as exc:
            logger.warning(f"Agent package not found: {self._package} ({exc}). No agents loaded.")
            return
        except Exception:  # noqa: BLE001
            logger.exception(f"Error reading agent package {self._package}. No agents loaded.")
            return

        search_path = getattr(package, "__path__", None)
        if search_path is None:
            logger.warning(f"Agent source '{self._package}' is not a package. No agents loaded.")
            return

        for module_info in sorted(pkgutil.iter_modules(search_path), key=lambda m: m.name):
            if module_info.name.startswith("_"):
                continue
            module_name = f"{self._package}.{module_info.name}"
            try:
                module = importlib.import_module(module_name)
            except Exception:  # noqa: BLE001
                logger.exception(f"Failed to load agent from {module_name}")
                self.error_count += 1
                continue

            candidate = getattr(module, "agent", None)
            if not self.register(candidate, source=module_name):
                self.error_count += 1
                continue

            if candidate.id != module_info.name:
                logger.info(
                    f"Agent ID differs from module name in {module_name}: "
                    f"using declared ID '{candidate.id}'"
                )
            self.loaded_count += 1

        logger.info(
            f"Agent registry initialized. Loaded {self.loaded_count} agent(s). Errors: {self.error_count}."
        )
