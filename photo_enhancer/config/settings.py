# Engine settings
# Thresholds below are empirical values from the photo booth.

# --- Metrics Analyzer ---
METRICS_THRESHOLDS = {
    "underexposed_brightness": 80.0,   # mean luminance below -> underexposed
    "overexposed_brightness": 200.0,   # mean luminance above -> overexposed
    "sharpening_sharpness": 0.3,       # normalized gradient below -> sharpen
    "contrast_boost_contrast": 0.15,   # normalized stddev below -> boost contrast
    "white_balance_deviation": 0.15,   # fraction of the grand RGB mean
    "denoise_sharpness": 0.25,         # normalized gradient below -> denoise
}

# Perceptual luminance weights (R, G, B)
LUMINANCE_WEIGHTS = (0.299, 0.587, 0.114)

# --- Enhancement Pipeline ---
ENHANCEMENT_DEFAULTS = {
    "aggressive_multiplier": 1.5,
    "underexposure_gain": 0.4,
    "overexposure_gain": 0.3,
    "contrast_gain": 2.0,
    # Adjustments requested through free-text hints
    "hint_brightness_gain": 0.1,
    "hint_contrast_gain": 0.15,
    "hint_saturation_gain": 0.1,
    # White balance
    "wb_max_factor": 1.5,
    # Denoising (median blend)
    "denoise_intensity": 0.3,
    "denoise_intensity_aggressive": 0.4,
    "denoise_variance_scale": 100.0,
    # Unsharp mask
    "sharpen_intensity": 0.6,
    "sharpen_intensity_aggressive": 0.8,
    "unsharp_sigma": 1.0,
    "unsharp_kernel_size": 5,
}

# --- Artistic filters ---
FILTER_DEFAULTS = {
    "contrast_pivot": 128.0,
    "vibrant_target_luminance": 128.0,
    "vibrant_tolerance": (0.8, 1.2),
    "pastel_lift": 30.0,
    "pastel_desaturation": 0.5,
}

# --- Filter Preview Cache ---
CACHE_DEFAULTS = {
    "max_entries": 50,
    "evict_count": 10,
    "max_workers": 2,  # background threads for pixel work
}

# --- Codec ---
CODEC_DEFAULTS = {
    "output_format": "JPEG",
    "jpeg_quality": 100,  # maximum quality, no extra lossy recompression
    "png_compression": 6,
}

# --- Logging ---
LOGGING_LEVEL = "INFO" # Options: DEBUG, INFO, WARNING, ERROR
