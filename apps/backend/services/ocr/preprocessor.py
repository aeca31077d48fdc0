import cv2
import numpy as np
from dataclasses import dataclass

MAX_DIMENSION = 2000


@dataclass
class PreprocessedImage:
    image: np.ndarray
    content: bytes
    mime_type: str
    width: int
    height: int
    original_width: int
    original_height: int

    def describe(self) -> dict:
        return {
            "width": self.original_width,
            "height": self.original_height,
            "processedWidth": self.width,
            "processedHeight": self.height,
            "format": self.mime_type,
        }


class ImagePreprocessor:
    def __init__(self, max_dimension: int = MAX_DIMENSION):
        self.max_dimension = max_dimension

    def decode(self, contents: bytes) -> np.ndarray:
        nparr = np.frombuffer(contents, np.uint8)
        img = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
        if img is None:
            raise ValueError("Could not decode image data")
        return img

    def preprocess(self, contents: bytes) -> PreprocessedImage:
        """
        Decodes the upload, fits it inside the bounding box and enhances contrast.
        Returns: PNG-encoded image ready for the vision model or OCR
        """
        img = self.decode(contents)
        original_height, original_width = img.shape[:2]

        # 1. Downscale to fit (never enlarge)
        resized = self.fit_inside(img)

        # 2. Grayscale + contrast normalization (CLAHE)
        gray = cv2.cvtColor(resized, cv2.COLOR_BGR2GRAY)
        clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
        enhanced = clahe.apply(gray)

        enhanced_bgr = cv2.cvtColor(enhanced, cv2.COLOR_GRAY2BGR)
        height, width = enhanced_bgr.shape[:2]

        return PreprocessedImage(
            image=enhanced_bgr,
            content=self.encode_image(enhanced_bgr),
            mime_type="image/png",
            width=width,
            height=height,
            original_width=original_width,
            original_height=original_height,
        )

    def fit_inside(self, img: np.ndarray) -> np.ndarray:
        height, width = img.shape[:2]
        scale = min(self.max_dimension / width, self.max_dimension / height)
        if scale >= 1:
            return img
        size = (max(1, round(width * scale)), max(1, round(height * scale)))
        return cv2.resize(img, size, interpolation=cv2.INTER_AREA)

    def encode_image(self, img: np.ndarray) -> bytes:
        """Encodes numpy array back to PNG bytes"""
        ok, buffer = cv2.imencode('.png', img)
        if not ok:
            raise ValueError("Could not encode image")
        return buffer.tobytes()
