"""
ASCII charts for the terminal.

Creates plots of estimated 1RM progress and weekly tonnage.
"""

from datetime import date, datetime


def create_e1rm_plot(
    history: list[tuple[str, float]],
    exercise_name: str,
    width: int = 60,
    height: int = 16,
) -> str:
    """
    Create an ASCII plot of estimated 1RM over time.

    Args:
        history: (ISO date, e1RM kg) points, as returned by e1rm_history()
        exercise_name: Display name shown in chart title
        width: Plot width in characters (including the y-axis labels)
        height: Plot height in lines (including title and x-axis)

    Returns:
        ASCII art string
    """
    points = [(datetime.strptime(d, "%Y-%m-%d"), v) for d, v in history if v > 0]
    if not points:
        return f"No weighted sets recorded for {exercise_name} yet."

    points.sort(key=lambda p: p[0])
    min_date = points[0][0]
    max_date = points[-1][0]
    date_range = (max_date - min_date).days or 1

    values = [v for _, v in points]
    y_min = max(0.0, min(values) - 5)
    y_max = max(values) + 5
    y_range = (y_max - y_min) or 1.0

    plot_width = width - 8  # Room for "123.4 ┤"
    plot_height = height - 4  # Title, rule, x-axis rule, date labels
    grid = [[" " for _ in range(plot_width)] for _ in range(plot_height)]

    plot_points: list[tuple[int, int]] = []
    for d, v in points:
        x = int(((d - min_date).days / date_range) * (plot_width - 1))
        y = plot_height - 1 - int(((v - y_min) / y_range) * (plot_height - 1))
        plot_points.append((x, y))

    # Straight segments between consecutive points
    for (x1, y1), (x2, y2) in zip(plot_points, plot_points[1:]):
        steps = max(abs(x2 - x1), abs(y2 - y1))
        for step in range(1, steps):
            x = x1 + round((x2 - x1) * step / steps)
            y = y1 + round((y2 - y1) * step / steps)
            if grid[y][x] == " ":
                grid[y][x] = "─" if y == y1 or y == y2 else "·"

    for x, y in plot_points:
        grid[y][x] = "●"

    lines = [f"Estimated 1RM ({exercise_name})", "─" * width]
    for i, row in enumerate(grid):
        y_val = y_max - (i / (plot_height - 1)) * y_range if plot_height > 1 else y_max
        lines.append(f"{y_val:6.1f} ┤" + "".join(row))
    lines.append("─" * width)

    label_line = [" "] * plot_width
    mid_date = min_date + (max_date - min_date) / 2
    for x_pos, d in ((0, min_date), (plot_width // 2, mid_date), (plot_width - 6, max_date)):
        for i, c in enumerate(d.strftime("%b %d")):
            if 0 <= x_pos + i < plot_width:
                label_line[x_pos + i] = c
    lines.append(" " * 8 + "".join(label_line))

    best_date, best = max(points, key=lambda p: p[1])
    lines.append(f"● e1RM   best {best:.1f} kg on {best_date.strftime('%Y-%m-%d')}")
    return "\n".join(lines)


def create_simple_bar_chart(
    labels: list[str],
    values: list[float],
    width: int = 40,
    title: str = "",
) -> str:
    """
    Create a simple horizontal bar chart.

    Args:
        labels: Labels for each bar
        values: Values for each bar
        width: Maximum bar width
        title: Chart title

    Returns:
        ASCII bar chart string
    """
    if not values:
        return "No data to display."

    max_val = max(values)
    max_label_len = max(len(label) for label in labels) if labels else 0

    lines = []
    if title:
        lines.append(title)
        lines.append("─" * (max_label_len + width + 10))

    for label, value in zip(labels, values):
        bar_len = int((value / max_val) * width) if max_val > 0 else 0
        lines.append(f"{label:>{max_label_len}} │{'█' * bar_len} {value:.0f}")

    return "\n".join(lines)


def create_weekly_volume_chart(weekly: list[tuple[date, float]]) -> str:
    """
    Create a chart of weekly tonnage.

    Args:
        weekly: (week start, volume kg) pairs, oldest first, as returned
            by weekly_volume()

    Returns:
        ASCII chart string
    """
    if not weekly:
        return "No training history."

    labels = [f"w/c {start.strftime('%b %d')}" for start, _ in weekly]
    values = [volume for _, volume in weekly]
    return create_simple_bar_chart(labels, values, title="Weekly Volume (kg)")
