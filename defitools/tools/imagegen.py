"""
Generate-then-pin image pipeline
================================
Step 1: Fireworks AI renders a PNG from the prompt.
Step 2: the PNG is pinned to IPFS through Pinata.

Step 2 only starts after step 1 fully succeeds. If pinning fails the image
is dropped; nothing was persisted so there is nothing to clean up. A retry
regenerates from scratch and may pin to a different CID.

Requires FIREWORKS_API_KEY and PINATA_JWT.
"""

import json
from typing import Optional

from pydantic import BaseModel, Field

from defitools.client import create_tool, create_tool_collection
from defitools.errors import ConfigurationError, ParseError
from defitools.http import ensure_ok, json_body

FIREWORKS_URL = "https://api.fireworks.ai/inference/v1/image_generation/{model}"
PINATA_URL = "https://api.pinata.cloud/pinning/pinFileToIPFS"
IPFS_GATEWAY = "https://content.wrappr.wtf/ipfs/{cid}"

DEFAULT_MODEL = "accounts/fireworks/models/stable-diffusion-xl-1024-v1-0"
IMAGE_SIZE = 1024


class GenerateImageParams(BaseModel):
    prompt: str = Field(min_length=1, description="A detailed prompt for image generation")
    negative_prompt: Optional[str] = Field(default=None, description="Things to keep out of the image")
    steps: int = Field(default=30, ge=1, le=50, description="Diffusion steps")


def image_gen_tools(
    fireworks_api_key: Optional[str],
    pinata_jwt: Optional[str],
    model: str = DEFAULT_MODEL,
):
    if not fireworks_api_key or not fireworks_api_key.strip():
        raise ConfigurationError("Fireworks API key is required for image generation tools.")
    if not pinata_jwt or not pinata_jwt.strip():
        raise ConfigurationError("Pinata JWT is required for image generation tools.")

    async def _generate_and_pin_image(client, params: GenerateImageParams) -> dict:
        async with client.http() as http:
            gen = await http.post(
                FIREWORKS_URL.format(model=model),
                headers={
                    "Authorization": f"Bearer {fireworks_api_key}",
                    "Accept": "image/png",
                },
                json={
                    "prompt": params.prompt,
                    "negative_prompt": params.negative_prompt or "",
                    "width": IMAGE_SIZE,
                    "height": IMAGE_SIZE,
                    "steps": params.steps,
                    "safety_check": True,
                },
            )
            image = ensure_ok(gen, "Fireworks").content

            metadata = {"name": "AI Generated Image", "keyvalues": {"prompt": params.prompt}}
            pin = await http.post(
                PINATA_URL,
                headers={"Authorization": f"Bearer {pinata_jwt}"},
                files={"file": ("image.png", image, "image/png")},
                data={"pinataMetadata": json.dumps(metadata)},
            )
            body = json_body(ensure_ok(pin, "Pinata"), "Pinata")

        cid = body.get("IpfsHash") if isinstance(body, dict) else None
        if not cid:
            raise ParseError("Pinata response did not include an IpfsHash")

        return {
            "prompt": params.prompt,
            "ipfs_cid": cid,
            "ipfs_url": IPFS_GATEWAY.format(cid=cid),
        }

    return create_tool_collection([
        create_tool(
            name="generate_and_pin_image",
            description=(
                f"Generate an image from text with Fireworks AI ({model}), then upload "
                "it to IPFS via Pinata. Returns the IPFS CID and link."
            ),
            parameters=GenerateImageParams,
            execute=_generate_and_pin_image,
        ),
    ])
