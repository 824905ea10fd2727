#!/usr/bin/env python3
"""
Demo Script - Run the local image engine end to end
Generates a test image, upscales it toward 4K and resizes it
"""
import sys
import io
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))


def create_test_image():
    """Create a simple test image with shapes and a gradient"""
    from PIL import Image, ImageDraw

    img = Image.new('RGB', (800, 600), color='white')
    draw = ImageDraw.Draw(img)

    for y in range(600):
        r = int(255 - (y / 600) * 50)
        g = int(255 - (y / 600) * 30)
        b = int(255 - (y / 600) * 20)
        draw.line([(0, y), (800, y)], fill=(r, g, b))

    draw.rectangle([300, 200, 700, 500], outline='black', width=2)
    draw.ellipse([80, 80, 260, 260], fill=(200, 60, 60), outline='black')
    draw.text((50, 520), "Local Image Engine", fill='black')
    return img


def main():
    print("=" * 60)
    print("LOCAL IMAGE ENGINE - DEMO")
    print("=" * 60)

    from image_engine.logging_config import setup_logging
    from image_engine.service import ImageEngineService, lock_aspect_ratio

    setup_logging(level="INFO", log_to_file=False, log_to_console=True)
    service = ImageEngineService()

    print("\nCreating test image...")
    buffer = io.BytesIO()
    create_test_image().save(buffer, format='PNG')
    original_bytes = buffer.getvalue()
    dims = service.dimensions(original_bytes)
    print(f"   {dims.width}x{dims.height}, {len(original_bytes)/1024:.1f} KB")

    print("\nUpscaling toward 4K...")
    upscaled = service.upscale_bytes(original_bytes)
    print(f"   {upscaled.original_dimensions} -> {upscaled.output_dimensions} "
          f"in {upscaled.processing_time_ms}ms ({upscaled.output_size_bytes/1024:.1f} KB)")

    print("\nResizing to half width, aspect locked...")
    target = lock_aspect_ratio(dims.width / dims.height, width=dims.width // 2)
    resized = service.resize_bytes(original_bytes, target.width, target.height)
    print(f"   {resized.original_dimensions} -> {resized.output_dimensions} "
          f"in {resized.processing_time_ms}ms")

    output_dir = Path("data/demo_output")
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / "original.png").write_bytes(original_bytes)
    (output_dir / "upscaled_4k.jpg").write_bytes(upscaled.image_bytes)
    (output_dir / "resized.jpg").write_bytes(resized.image_bytes)
    print(f"\nImages saved to: {output_dir.absolute()}")

    print("\nStart the API server with:")
    print("   uvicorn api.main:app --reload --port 8000")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception as e:
        print(f"\nError: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
