#!/usr/bin/env python3
"""Value study GUI - open a photo, pick values and contrast, save."""

import logging
import tkinter as tk
from pathlib import Path
from tkinter import ttk, filedialog, messagebox

from PIL import Image, ImageTk, UnidentifiedImageError

from frame_scheduler import FrameScheduler
from value_study import (
    CONTRAST_RANGE,
    DEFAULT_LEVELS,
    VALUE_PRESETS,
    StudyParams,
    ValueStudySession,
    study_filename,
)

logger = logging.getLogger(__name__)


class ValueStudyApp:
    def __init__(self, root):
        self.root = root
        self.root.title("Value Study")
        self.root.geometry("900x750")

        self.icon_session = None
        self.session = None
        self.current_result = None
        self.image_path = None

        self.scheduler = FrameScheduler.for_tk(self.root)
        self.setup_ui()

    @property
    def params(self) -> StudyParams:
        return StudyParams(int(self.levels.get()), int(round(self.contrast.get())))

    def setup_ui(self):
        main_frame = ttk.Frame(self.root, padding=10)
        main_frame.pack(fill=tk.BOTH, expand=True)

        # Top controls
        controls = ttk.Frame(main_frame)
        controls.pack(fill=tk.X, pady=(0, 10))

        ttk.Button(controls, text="Open Image", command=self.open_image).pack(side=tk.LEFT, padx=5)

        ttk.Label(controls, text="Values:").pack(side=tk.LEFT, padx=(20, 5))
        self.levels = tk.IntVar(value=DEFAULT_LEVELS)
        for preset in VALUE_PRESETS:
            ttk.Radiobutton(controls, text=str(preset), value=preset, variable=self.levels,
                            command=self.request_render).pack(side=tk.LEFT, padx=2)

        ttk.Label(controls, text="Contrast:").pack(side=tk.LEFT, padx=(20, 5))
        self.contrast = tk.DoubleVar(value=0)
        lo, hi = CONTRAST_RANGE
        ttk.Scale(controls, from_=lo, to=hi, variable=self.contrast, orient=tk.HORIZONTAL,
                  length=200, command=self.on_contrast_change).pack(side=tk.LEFT, padx=5)
        self.contrast_label = ttk.Label(controls, text="0", width=4)
        self.contrast_label.pack(side=tk.LEFT, padx=5)

        ttk.Button(controls, text="Save PNG", command=self.save_image).pack(side=tk.LEFT, padx=5)

        result_frame = ttk.LabelFrame(main_frame, text="Value study", padding=5)
        result_frame.pack(fill=tk.BOTH, expand=True)
        self.result_canvas = tk.Canvas(result_frame, bg="#333")
        self.result_canvas.pack(fill=tk.BOTH, expand=True)

        # Status bar
        self.status = ttk.Label(main_frame, text="Open an image to get started")
        self.status.pack(fill=tk.X, pady=(10, 0))

    def on_contrast_change(self, event=None):
        self.contrast_label.config(text=str(self.params.contrast))
        self.request_render()

    def request_render(self):
        if self.session is not None:
            self.scheduler.request(self.render)

    def open_image(self):
        filetypes = [
            ("Image files", "*.jpg *.jpeg *.png *.gif *.bmp *.webp"),
            ("All files", "*.*")
        ]
        path = filedialog.askopenfilename(filetypes=filetypes)
        if path:
            self.load_image(Path(path))

    def load_image(self, path: Path):
        try:
            with Image.open(path) as img:
                img.load()
                source = img.copy()
        except (OSError, UnidentifiedImageError, Image.DecompressionBombError) as err:
            logger.warning("Rejected %s: %s", path, err)
            messagebox.showwarning("Not an image", f"Could not open {path.name}:\n{err}")
            return

        # New image, new cache; grayscale is extracted once here
        self.scheduler.cancel()
        self.image_path = path
        self.session = ValueStudySession.from_pil(source)
        self.icon_session = ValueStudySession.thumbnail(source)
        self.render()
        self.status.config(text=f"Loaded: {path.name} ({self.session.width}x{self.session.height})")

    def render(self):
        if self.session is None:
            return
        params = self.params
        self.current_result = self.session.render_image(params)
        self.display_result()
        self.update_icon(params)
        self.status.config(text=f"Preview - {params.levels} values, contrast {params.contrast}")

    def update_icon(self, params: StudyParams):
        self.icon_photo = ImageTk.PhotoImage(self.icon_session.render_image(params, preserve_alpha=True))
        self.root.iconphoto(False, self.icon_photo)

    def display_result(self):
        if self.current_result is None:
            return
        self.root.update_idletasks()
        canvas_w = self.result_canvas.winfo_width()
        canvas_h = self.result_canvas.winfo_height()
        if canvas_w < 10 or canvas_h < 10:
            canvas_w, canvas_h = 800, 600

        img = self.current_result.copy()
        img.thumbnail((canvas_w, canvas_h), Image.Resampling.NEAREST)
        self.result_photo = ImageTk.PhotoImage(img)
        self.result_canvas.delete("all")
        self.result_canvas.create_image(canvas_w//2, canvas_h//2, image=self.result_photo)

    def save_image(self):
        if self.session is None:
            messagebox.showwarning("No image", "No image loaded")
            return

        # Make sure the saved file matches the latest slider position
        self.scheduler.flush()
        params = self.params
        default_name = study_filename(self.image_path.stem if self.image_path else None, params)

        path = filedialog.asksaveasfilename(
            defaultextension=".png",
            initialfile=default_name,
            filetypes=[("PNG", "*.png"), ("All files", "*.*")]
        )
        if not path:
            return

        try:
            self.session.render_image(params).save(path)
        except (OSError, ValueError) as err:
            logger.error("Saving %s failed: %s", path, err)
            messagebox.showerror("Save failed", str(err))
            return
        self.status.config(text=f"Saved: {path}")


def main():
    logging.basicConfig(level=logging.INFO)
    root = tk.Tk()
    app = ValueStudyApp(root)
    root.mainloop()

if __name__ == "__main__":
    main()
