"""System prompt for the computer-use loop."""
from __future__ import annotations

import platform
from datetime import datetime
from typing import Optional

SYSTEM_PROMPT_TEMPLATE = """<SYSTEM_CAPABILITY>
* You are utilising an Ubuntu virtual machine using {architecture} architecture with internet access.
* When you connect to the display, CHROMIUM IS ALREADY OPEN. The url bar is not visible but it is there.
* If you need to navigate to a new page, use the playwright tool's goto method, or use ctrl+l to focus the url bar and then enter the url.
* You won't be able to see the url bar from the screenshot but ctrl-l still works.
* When viewing a page it can be helpful to zoom out so that you can see everything on the page.
* Either that, or make sure you scroll down to see everything before deciding something isn't available.
* When using your computer function calls, they take a while to run and send back to you.
* Where possible/feasible, try to chain multiple of these calls all into one function calls request.
* The current date is {current_date}.
* After each step, take a screenshot and carefully evaluate if you have achieved the right outcome.
* Explicitly show your thinking: "I have evaluated step X..." If not correct, try again.
* Only when you confirm a step was executed correctly should you move on to the next one.
</SYSTEM_CAPABILITY>

<IMPORTANT>
* When using Chromium, if a startup wizard appears, IGNORE IT. Do not even click "skip this step".
* Instead, click on the search bar on the center of the screen where it says "Search or enter address", and enter the appropriate search term or URL there.
</IMPORTANT>"""


def get_system_prompt(
    suffix: Optional[str] = None,
    architecture: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """Build the system prompt.

    ``architecture`` and ``now`` default to the host machine and the current
    time; callers read them once per task.
    """
    now = now or datetime.now()
    prompt = SYSTEM_PROMPT_TEMPLATE.format(
        architecture=architecture or platform.machine(),
        current_date=f"{now:%A, %B} {now.day}, {now:%Y}",
    )
    if suffix:
        prompt = f"{prompt} {suffix}"
    return prompt
